# src/portfolio_goals_engine/config.py
import os
from dotenv import load_dotenv

# Load environment variables from a .env file for local development.
load_dotenv()


# Price cache policy
PRICE_CACHE_TTL_SECONDS = int(os.getenv("PORTFOLIO_PRICE_CACHE_TTL_SECONDS", "300"))
PRICE_CACHE_MAX_AGE_SECONDS = int(os.getenv("PORTFOLIO_PRICE_CACHE_MAX_AGE_SECONDS", "3600"))
MARKET_TIMEZONE = os.getenv("PORTFOLIO_MARKET_TIMEZONE", "Asia/Kolkata")
MARKET_OPEN = os.getenv("PORTFOLIO_MARKET_OPEN", "09:15")
MARKET_CLOSE = os.getenv("PORTFOLIO_MARKET_CLOSE", "15:30")

# Batch price refresh
PRICE_BATCH_SIZE = int(os.getenv("PORTFOLIO_PRICE_BATCH_SIZE", "5"))
PRICE_BATCH_DELAY_SECONDS = float(os.getenv("PORTFOLIO_PRICE_BATCH_DELAY_SECONDS", "0.1"))
PRICE_FETCH_ATTEMPTS = int(os.getenv("PORTFOLIO_PRICE_FETCH_ATTEMPTS", "2"))

# Summary
PERFORMER_COUNT = int(os.getenv("PORTFOLIO_PERFORMER_COUNT", "5"))
