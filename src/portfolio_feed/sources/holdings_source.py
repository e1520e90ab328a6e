"""Holdings source: load typed Holding records from a CSV file."""

import csv
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Protocol, Union

from portfolio_feed.core.exceptions import HoldingsSourceError, RecordParseError
from portfolio_feed.core.numbers import parse_number, round2
from portfolio_feed.domain.models import Holding

logger = logging.getLogger(__name__)

# Columns read into top-level Holding fields
CSV_COLUMNS = [
    "name",
    "purchase_price",
    "qty",
    "investment",
    "symbol",
    "sector",
    "cmp",
    "present_value",
    "gain_loss",
    "gain_loss_percent",
    "market_cap",
    "pe",
    "latest_earnings",
    "stage",
    "remark",
]

REQUIRED_COLUMNS = {"name", "purchase_price", "qty"}

# Prefixed columns carried through as opaque attribute groups
FUNDAMENTALS_PREFIX = "fundamentals."
GROWTH_PREFIX = "growth3yr."

HEADER_NAMES = {"particulars"}
OTHERS_SECTOR = "Others"


class HoldingsSource(Protocol):
    """Anything that supplies an ordered sequence of holdings."""

    def load(self) -> list[Holding]:
        ...


@dataclass
class LoadSummary:
    """Summary of one holdings load."""

    loaded_count: int = 0
    skipped_count: int = 0
    errors: list[str] = field(default_factory=list)


class CsvHoldingsSource:
    """
    CSV holdings loader.

    Sector may come from a `sector` column or from section rows: a row with a
    name but no purchase price/quantity whose name contains "Sector" (or is
    "Others") sets the sector for the rows that follow it. Malformed rows are
    skipped and recorded in `last_summary`.
    """

    def __init__(self, path: Union[str, Path], default_suffix: str = ".NS"):
        self._path = Path(path)
        self._default_suffix = default_suffix
        self.last_summary = LoadSummary()

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> list[Holding]:
        """
        Read holdings from the CSV file.

        Raises HoldingsSourceError if the file is missing, unreadable or lacks
        the required columns. Individual bad rows never raise.
        """
        summary = LoadSummary()
        holdings: list[Holding] = []
        current_sector = ""

        try:
            with open(self._path, newline="", encoding="utf-8-sig") as csvfile:
                reader = csv.DictReader(csvfile)
                fieldnames = [f.strip() for f in (reader.fieldnames or [])]
                missing = REQUIRED_COLUMNS - set(fieldnames)
                if missing:
                    raise HoldingsSourceError(
                        f"{self._path}: missing required columns: {sorted(missing)}"
                    )

                for row_num, raw in enumerate(reader, start=2):  # header is row 1
                    row = {(k or "").strip(): (v or "").strip() for k, v in raw.items() if k}
                    name = row.get("name", "")
                    if not name or name.lower() in HEADER_NAMES:
                        continue

                    section = self._section_name(row)
                    if section is not None:
                        current_sector = section
                        continue

                    try:
                        holding = self._parse_row(row, row_num, len(holdings) + 1, current_sector)
                    except RecordParseError as e:
                        summary.skipped_count += 1
                        summary.errors.append(e.message)
                        logger.warning("Skipping holdings record: %s", e.message)
                        continue
                    holdings.append(holding)
        except OSError as e:
            raise HoldingsSourceError(f"Cannot read holdings file {self._path}: {e}") from e
        except (csv.Error, UnicodeDecodeError) as e:
            raise HoldingsSourceError(f"Malformed holdings file {self._path}: {e}") from e

        summary.loaded_count = len(holdings)
        self.last_summary = summary
        logger.info(
            "Loaded %d holdings from %s (%d skipped)",
            summary.loaded_count,
            self._path,
            summary.skipped_count,
        )
        return holdings

    def _section_name(self, row: dict[str, str]) -> Optional[str]:
        """Return the sector a section row introduces, or None for data rows."""
        if row.get("purchase_price") or row.get("qty"):
            return None
        name = row["name"]
        if name == OTHERS_SECTOR:
            return OTHERS_SECTOR
        if "sector" in name.lower():
            return " ".join(w for w in name.split() if w.lower() != "sector").strip()
        return None

    def _parse_row(self, row: dict[str, str], row_num: int, holding_id: int, current_sector: str) -> Holding:
        name = row["name"]
        purchase_price = parse_number(row.get("purchase_price"))
        if purchase_price is None:
            raise RecordParseError(row_num, f"invalid purchase_price {row.get('purchase_price')!r} for {name}")
        qty = parse_number(row.get("qty"))
        if qty is None or qty <= 0:
            raise RecordParseError(row_num, f"invalid qty {row.get('qty')!r} for {name}")

        investment = parse_number(row.get("investment"))
        if investment is None:
            investment = round2(purchase_price * qty)

        return Holding(
            id=holding_id,
            name=name,
            purchase_price=purchase_price,
            qty=qty,
            investment=investment,
            symbol=self._symbol_for(row.get("symbol", ""), name),
            sector=row.get("sector") or current_sector,
            cmp=parse_number(row.get("cmp")) or 0.0,
            present_value=parse_number(row.get("present_value")) or 0.0,
            gain_loss=parse_number(row.get("gain_loss")) or 0.0,
            gain_loss_percent=parse_number(row.get("gain_loss_percent")) or 0.0,
            market_cap=_opaque(row.get("market_cap")),
            pe=_opaque(row.get("pe")),
            latest_earnings=_opaque(row.get("latest_earnings")),
            stage=row.get("stage") or None,
            remark=row.get("remark") or "",
            fundamentals=_prefixed(row, FUNDAMENTALS_PREFIX),
            growth3yr=_prefixed(row, GROWTH_PREFIX),
        )

    def _symbol_for(self, raw_symbol: str, name: str) -> str:
        """Use the given code, or derive one from the name; add the exchange suffix if bare."""
        symbol = raw_symbol.strip().upper() or "".join(name.upper().split())
        if "." not in symbol:
            symbol = f"{symbol}{self._default_suffix}"
        return symbol


def _opaque(value: Optional[str]):
    """Numbers become floats; other non-empty text is kept as-is."""
    if not value:
        return None
    number = parse_number(value)
    return number if number is not None else value


def _prefixed(row: dict[str, str], prefix: str) -> dict:
    return {
        key[len(prefix):]: _opaque(value)
        for key, value in row.items()
        if key.startswith(prefix)
    }
