"""Path definitions for muni-assessments project."""
from pathlib import Path

# Project root (relative to this file)
ROOT = Path(__file__).parent.parent.parent

# Data directory
DATA = ROOT / "data"

# Cache for raw CSV downloads
CACHE = DATA / "cache"

# Weekly assessment snapshots (one row per municipality per scrape)
ASSESSMENTS = DATA / "muni-real-estate-time-series.csv"

# Millage table (one row per municipality per tax year)
MILLAGE = DATA / "millage.csv"
