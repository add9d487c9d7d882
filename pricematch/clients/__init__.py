"""Concrete collaborator adapters for external data sources."""
from pricematch.clients.supabase_client import BackendError, SupabaseClient, SupabasePriceRepository
from pricematch.clients.csv_repository import CsvPriceRepository, load_prices_from_csv, load_stations_from_csv

__all__ = [
    "BackendError",
    "SupabaseClient",
    "SupabasePriceRepository",
    "CsvPriceRepository",
    "load_prices_from_csv",
    "load_stations_from_csv",
]
