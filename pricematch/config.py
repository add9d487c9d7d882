# pricematch/config.py
from dotenv import load_dotenv
import os

load_dotenv()

# Backend
SUPABASE_URL = os.getenv("SUPABASE_URL", "")
SUPABASE_ANON_KEY = os.getenv("SUPABASE_ANON_KEY")
PRICES_TABLE = "fuel_prices"

# Runtime parameters
CONCURRENCY = 20
REQUEST_TIMEOUT = 30
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Matching
EXACT_MATCH_CONFIDENCE = 0.9
MATCH_CONFIDENCE_FLOOR = 0.5
CITY_MATCH_SHORTCUT = 0.7
UNMATCHED_PRICE_CONFIDENCE = 0.3
LOW_CONFIDENCE_CAP = 0.49
HIGH_CONFIDENCE = 0.8
MEDIUM_CONFIDENCE = 0.5
BRAND_WEIGHT = 0.7
AREA_WEIGHT = 0.3
FUZZY_THRESHOLD = 85

# Aggregation
BEST_PRICES_LIMIT = 5

# File names
PRICES_CSV = os.getenv("PRICES_CSV", "fuel_prices.csv")
STATIONS_CSV = os.getenv("STATIONS_CSV", "gas_stations.csv")
OUTPUT_CSV = os.getenv("OUTPUT_CSV", "price_station_matches.csv")
