from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent

DATA_DIR = PROJECT_ROOT / "data"
SQLITE_PATH = str(DATA_DIR / "liquidmoney.db")
SCHEMA_PATH = str(PROJECT_ROOT / "db" / "schema.sql")
IMAGE_DIR = str(DATA_DIR / "liquidmoney_images")
EXPORT_DIR = str(DATA_DIR / "exports")

RECENT_LIMIT = 10
MONTHLY_WINDOW = 6
