import csv
import logging
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from models import Medicine, rebuild_fulltext_index

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 1000

# Positional layout of the catalog export; column 0 is a row counter.
COLUMN_SOURCE_ID = 1
COLUMN_MANUFACTURER = 2
COLUMN_NAME = 3
COLUMN_RX_REQUIRED = 4
COLUMN_SHORT_COMPOSITION = 5
COLUMN_SLUG = 6
COLUMN_BRAND_NAME = 7
COLUMN_POWER = 8
COLUMN_CATEGORY = 9
COLUMN_MG_ID = 10
COLUMN_INTERNAL_ID = 11


@dataclass
class LoadResult:
    loaded: int
    skipped_rows: int
    indexed: int
    already_populated: bool = False


def load_catalog_csv(
    db: Session,
    csv_path: str | Path,
    batch_size: int = DEFAULT_BATCH_SIZE,
    force: bool = False,
    progress_callback: Callable[[str], None] | None = None,
) -> LoadResult:
    path = Path(csv_path)
    if not path.exists():
        raise FileNotFoundError(f"Catalog CSV not found: {path}")

    existing = db.query(func.count(Medicine.id)).scalar() or 0
    if existing and not force:
        logger.info(f"Catalog already contains {existing} medicines, skipping load")
        return LoadResult(loaded=0, skipped_rows=0, indexed=0, already_populated=True)
    if existing:
        logger.info(f"Replacing {existing} existing medicines")
        db.query(Medicine).delete()

    loaded = 0
    skipped = 0
    batch: List[Medicine] = []

    with path.open("r", encoding="utf-8", newline="") as handle:
        reader = csv.reader(handle)
        header = next(reader, None)
        if header is None:
            logger.warning(f"Catalog CSV {path} is empty")
            return LoadResult(loaded=0, skipped_rows=0, indexed=0)

        for line_number, values in enumerate(reader, start=2):
            medicine = parse_catalog_row(values, len(header))
            if medicine is None:
                skipped += 1
                logger.debug(f"Skipping catalog row {line_number}")
                continue
            batch.append(medicine)
            if len(batch) >= batch_size:
                loaded += _flush_batch(db, batch)
                batch = []
                if progress_callback:
                    progress_callback(f"Processed {loaded} medicines...")

    if batch:
        loaded += _flush_batch(db, batch)

    indexed = rebuild_fulltext_index(db.connection())
    db.commit()
    logger.info(f"Loaded {loaded} medicines from {path} ({skipped} rows skipped, {indexed} indexed)")
    return LoadResult(loaded=loaded, skipped_rows=skipped, indexed=indexed)


def parse_catalog_row(values: List[str], expected_columns: int) -> Optional[Medicine]:
    if len(values) < expected_columns or len(values) <= COLUMN_INTERNAL_ID:
        return None
    cells = [value.strip() for value in values]
    name = cells[COLUMN_NAME]
    if not name:
        return None

    return Medicine(
        id=str(uuid.uuid4()),
        source_id=cells[COLUMN_SOURCE_ID],
        manufacturer_name=cells[COLUMN_MANUFACTURER],
        name=name,
        rx_required=_optional(cells[COLUMN_RX_REQUIRED]),
        short_composition=_optional(cells[COLUMN_SHORT_COMPOSITION]),
        slug=_optional(cells[COLUMN_SLUG]),
        brand_name=_optional(cells[COLUMN_BRAND_NAME]),
        power=_optional(cells[COLUMN_POWER]),
        category=_optional(cells[COLUMN_CATEGORY]),
        mg_id=_optional_int(cells[COLUMN_MG_ID]),
        internal_id=_optional_int(cells[COLUMN_INTERNAL_ID]),
    )


def _flush_batch(db: Session, batch: List[Medicine]) -> int:
    db.add_all(batch)
    db.flush()
    return len(batch)


def _optional(value: str) -> Optional[str]:
    return value or None


def _optional_int(value: str) -> Optional[int]:
    if not value:
        return None
    try:
        return int(float(value))
    except (ValueError, OverflowError):
        return None
