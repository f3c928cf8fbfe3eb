"""Load and save resident funding files.

A funding file is YAML (or JSON) with two lists:

    residents:
      - resident_id: res-001
        room_rate: 1000
        care_package_rate: 500
    funding:
      - resident_id: res-001
        funding_source_id: la-leeds
        start_date: 2025-04-01
        end_date: null
        weekly_amount: 800
"""

from pathlib import Path
from typing import List, Tuple

import yaml
from pydantic import ValidationError as PydanticValidationError

from ..errors import ValidationError
from ..schemas import FundingRecord, ResidentFinancialProfile


def load_funding_file(path: Path) -> Tuple[List[ResidentFinancialProfile], List[FundingRecord]]:
    """Load resident profiles and funding records from a file.

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValidationError: If an entry is malformed
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Funding file not found: {path}")

    try:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ValidationError(f"{path.name}: cannot parse: {e}")

    if not isinstance(data, dict):
        raise ValidationError(f"{path.name}: expected a mapping with 'residents' and 'funding'")

    try:
        residents = [ResidentFinancialProfile.model_validate(r) for r in data.get("residents") or []]
        records = [FundingRecord.model_validate(r) for r in data.get("funding") or []]
    except PydanticValidationError as e:
        raise ValidationError(f"{path.name}: {e}")

    return residents, records


def save_funding_file(
    path: Path,
    residents: List[ResidentFinancialProfile],
    records: List[FundingRecord],
) -> Path:
    """Write resident profiles and funding records back to a YAML file."""
    path = Path(path)
    data = {
        "residents": [r.model_dump(mode="json") for r in residents],
        "funding": [r.model_dump(mode="json") for r in records],
    }
    with open(path, "w") as f:
        yaml.safe_dump(data, f, sort_keys=False)
    return path
