import os
from dotenv import load_dotenv

load_dotenv()

# Persistence
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///travelchat.db")

# Amadeus (travel-commerce provider)
AMADEUS_CLIENT_ID = os.getenv("AMADEUS_CLIENT_ID")
AMADEUS_CLIENT_SECRET = os.getenv("AMADEUS_CLIENT_SECRET")
AMADEUS_HOSTNAME = os.getenv("AMADEUS_HOSTNAME", "test")
AMADEUS_CURRENCY = os.getenv("AMADEUS_CURRENCY", "USD")

# OpenAI (generic reply generation)
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o")
OPENAI_TEMPERATURE = float(os.getenv("OPENAI_TEMPERATURE", "0.7"))
OPENAI_MAX_TOKENS = int(os.getenv("OPENAI_MAX_TOKENS", "1000"))

# Routing
INTENT_CONFIDENCE_THRESHOLD = float(os.getenv("INTENT_CONFIDENCE_THRESHOLD", "0.65"))

# Booking
PRICE_TOLERANCE = float(os.getenv("PRICE_TOLERANCE", "0.01"))
TICKETING_DELAY = os.getenv("TICKETING_DELAY", "6D")

# Hotel search
DEFAULT_HOTEL_NIGHTS = int(os.getenv("DEFAULT_HOTEL_NIGHTS", "3"))

# Reply formatting
MAX_FLIGHT_RESULTS = 5
MAX_HOTEL_RESULTS = 3
MAX_POI_RESULTS = 5

# Async reply generation
REPLY_WORKERS = int(os.getenv("REPLY_WORKERS", "4"))

# Server
PORT = int(os.getenv("PORT", "5000"))

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
