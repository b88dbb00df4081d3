import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import List, Optional, Tuple

from ..core.config import settings
from ..schemas.symptom import SymptomEntry

logger = logging.getLogger(__name__)

DEFAULT_DATASET_PATH = Path(__file__).resolve().parent.parent / "data" / "symptoms.json"

def load_symptom_entries(path: Optional[Path] = None) -> Tuple[SymptomEntry, ...]:
    """Read and validate a symptom dataset file."""
    dataset_path = Path(path or settings.SYMPTOMS_DATASET_PATH or DEFAULT_DATASET_PATH)
    with dataset_path.open(encoding="utf-8") as f:
        raw: List[dict] = json.load(f)

    entries = tuple(SymptomEntry(**item) for item in raw)
    logger.info(f"Loaded {len(entries)} symptom entries from {dataset_path}")
    return entries

@lru_cache(maxsize=1)
def get_symptom_entries() -> Tuple[SymptomEntry, ...]:
    """Dataset loaded once per process; read-only afterwards."""
    return load_symptom_entries()
