from environs import Env

env = Env()
env.read_env()

DATABASE_URL = env.str("DATABASE_URL", "sqlite:///./secret_santa.db")
SECRET_KEY = env.str("SECRET_KEY", "change-me")

EVENT_CODE = env.str("EVENT_CODE", "GLOBAL")
EVENT_NAME = env.str("EVENT_NAME", "Secret Santa")
EVENT_PASSCODE = env.str("EVENT_PASSCODE", "ho-ho-ho")

ACCESS_TOKEN_EXPIRE_MINUTES = env.int("ACCESS_TOKEN_EXPIRE_MINUTES", 60 * 24 * 7)
HASH_ROUNDS = env.int("HASH_ROUNDS", 300000)

MAX_IMAGE_MB = env.int("MAX_IMAGE_MB", 5)
MAX_IMAGES_PER_GIFT = env.int("MAX_IMAGES_PER_GIFT", 6)

POLL_INTERVAL_SECONDS = env.float("POLL_INTERVAL_SECONDS", 3.0)

LOG_LEVEL = env.str("LOG_LEVEL", "INFO")
LOG_FILE = env.str("LOG_FILE", "")
