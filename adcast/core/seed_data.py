from typing import Any, Dict, List


DEFAULT_ADVERTISERS: List[Dict[str, Any]] = [
    {"name": "tourism_australia", "display_name": "Tourism Australia", "business_type": "Mall"},
    {"name": "coldbrew_drinks", "display_name": "ColdBrew Drinks", "business_type": "Coffee shop"},
    {"name": "grab_insurance", "display_name": "Grab / Insurance", "business_type": "Mall"},
    {"name": "local_fnb_comfort", "display_name": "Local F&B Comfort", "business_type": "Restaurant"},
    {"name": "soup_warm_drinks", "display_name": "Soup & Warm Drinks", "business_type": "Restaurant"},
    {"name": "suncare_products", "display_name": "SunCare Products", "business_type": "Gym"},
    {"name": "health_wellness", "display_name": "Health & Wellness", "business_type": "Gym"},
    {"name": "general_branding", "display_name": "General Branding", "business_type": "Mall"},
    {"name": "breakfast_fnb", "display_name": "Breakfast F&B", "business_type": "Fast Food"},
]

# Keyed by advertiser ``name``; resolved to ids at seed time
DEFAULT_CONDITION_RULES: List[Dict[str, Any]] = [
    {
        "rule_id": "very_hot_singapore",
        "advertiser": "coldbrew_drinks",
        "priority": 10,
        "conditions": {"temperature_c_greater_than": 35},
    },
    {
        "rule_id": "afternoon_heat",
        "advertiser": "coldbrew_drinks",
        "priority": 8,
        "conditions": {
            "time_of_day_between_start": "14:00",
            "time_of_day_between_end": "17:00",
            "temperature_c_greater_than": 30,
        },
    },
    {
        "rule_id": "high_humidity_hot",
        "advertiser": "coldbrew_drinks",
        "priority": 7,
        "conditions": {"humidity_percent_above": 75, "temperature_c_greater_than": 28},
    },
    {
        "rule_id": "hot_weather",
        "advertiser": "tourism_australia",
        "priority": 9,
        "conditions": {"temperature_c_greater_than": 32},
    },
    {
        "rule_id": "sunny_conditions",
        "advertiser": "tourism_australia",
        "priority": 6,
        "conditions": {"weather_condition_contains": "sunny"},
    },
    {
        "rule_id": "cool_weather",
        "advertiser": "soup_warm_drinks",
        "priority": 7,
        "conditions": {"temperature_c_less_than": 25},
    },
    {
        "rule_id": "rainy_conditions",
        "advertiser": "soup_warm_drinks",
        "priority": 8,
        "conditions": {"weather_condition_contains": "rain"},
    },
    {
        "rule_id": "morning_cool",
        "advertiser": "soup_warm_drinks",
        "priority": 6,
        "conditions": {
            "time_of_day_between_start": "06:00",
            "time_of_day_between_end": "10:00",
            "temperature_c_less_than": 27,
        },
    },
    {
        "rule_id": "high_humidity",
        "advertiser": "suncare_products",
        "priority": 8,
        "conditions": {"humidity_percent_above": 80},
    },
    {
        "rule_id": "uv_high",
        "advertiser": "suncare_products",
        "priority": 9,
        "conditions": {"uv_index_greater_than": 8},
    },
    {
        "rule_id": "comfort_food_weather",
        "advertiser": "local_fnb_comfort",
        "priority": 7,
        "conditions": {
            "weather_condition_contains": "cloudy",
            "temperature_c_between_min": 26,
            "temperature_c_between_max": 30,
        },
    },
    {
        "rule_id": "morning_peak_hours",
        "advertiser": "grab_insurance",
        "priority": 9,
        "conditions": {
            "time_of_day_between_start": "07:00",
            "time_of_day_between_end": "09:30",
        },
    },
    {
        "rule_id": "breakfast_peak_hours",
        "advertiser": "breakfast_fnb",
        "priority": 9,
        "conditions": {
            "time_of_day_between_start": "06:30",
            "time_of_day_between_end": "10:00",
        },
    },
    {
        "rule_id": "lunch_peak_hours",
        "advertiser": "breakfast_fnb",
        "priority": 8,
        "conditions": {
            "time_of_day_between_start": "12:00",
            "time_of_day_between_end": "14:00",
        },
    },
    {
        "rule_id": "weekend_brunch",
        "advertiser": "breakfast_fnb",
        "priority": 7,
        "conditions": {
            "is_weekend": True,
            "time_of_day_between_start": "10:00",
            "time_of_day_between_end": "15:00",
        },
    },
    {
        "rule_id": "fitness_hours",
        "advertiser": "health_wellness",
        "priority": 7,
        "conditions": {
            "time_of_day_between_start": "05:30",
            "time_of_day_between_end": "08:00",
        },
    },
    {
        "rule_id": "weekend_hours",
        "advertiser": "general_branding",
        "priority": 6,
        "conditions": {"is_weekend": True},
    },
]
