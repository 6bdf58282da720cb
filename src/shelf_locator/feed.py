"""
Shelf mapping feed: fetching and parsing the published CSV sheet.

The feed is a header-labelled CSV, usually a spreadsheet published to the
web. Columns are located by header name. Rows missing a mandatory value
are dropped and logged; a malformed administrative sheet never stops
resolution.
"""

import asyncio
import csv
import io
import logging
from dataclasses import dataclass, field

import httpx

from .models import FEED_COLUMNS, REQUIRED_COLUMNS, MappingRecord

logger = logging.getLogger(__name__)


class FeedError(Exception):
    """Base class for feed failures that invalidate a whole fetch."""


class FetchError(FeedError):
    """The feed could not be retrieved (network, HTTP status, timeout)."""


class FeedNotConfiguredError(FetchError):
    """No feed URL is configured."""


class FeedFormatError(FeedError):
    """The feed is not a usable mapping sheet (e.g. missing mandatory columns)."""


@dataclass
class RowError:
    """A feed row that was dropped."""

    line: int  # 1-based line number in the CSV text
    missing: list[str]
    row: dict[str, str | None] = field(default_factory=dict)

    def __str__(self) -> str:
        return f"line {self.line}: missing {', '.join(self.missing)}"


@dataclass
class FeedParseResult:
    """Records parsed from a feed plus the rows that were dropped."""

    records: list[MappingRecord] = field(default_factory=list)
    dropped: list[RowError] = field(default_factory=list)


def _clean(value: str | list | None) -> str | None:
    """Trim a cell; blank cells become None."""
    # DictReader puts surplus cells of a ragged row in a list
    if value is None or isinstance(value, list):
        return None
    value = value.strip()
    return value or None


def parse_feed(text: str) -> FeedParseResult:
    """
    Parse CSV feed text into mapping records.

    Raises:
        FeedFormatError: if the header lacks a mandatory column or the
            text is not parseable CSV
    """
    result = FeedParseResult()
    if text.startswith("\ufeff"):
        text = text[1:]

    reader = csv.DictReader(io.StringIO(text, newline=""))
    try:
        header = [name.strip() for name in (reader.fieldnames or [])]
        missing_columns = [c for c in REQUIRED_COLUMNS if c not in header]
        if missing_columns:
            raise FeedFormatError(
                f"Feed is missing required columns: {', '.join(missing_columns)}"
            )
        reader.fieldnames = header

        for raw_row in reader:
            row = {name: _clean(value) for name, value in raw_row.items() if name is not None}
            if not any(row.values()):
                continue

            line = reader.line_num
            missing = [c for c in REQUIRED_COLUMNS if not row.get(c)]
            if missing:
                error = RowError(line=line, missing=missing, row=row)
                logger.warning(f"Dropping feed row {error}")
                result.dropped.append(error)
                continue

            values = {
                attr: row.get(column)
                for column, attr in FEED_COLUMNS.items()
            }
            values["description"] = values["description"] or ""
            result.records.append(MappingRecord(**values))
    except csv.Error as e:
        raise FeedFormatError(f"Malformed CSV at line {reader.line_num}: {e}") from e

    return result


class FeedSource:
    """
    Fetches and parses the shelf mapping feed.

    One HTTP GET per load; no retries here, the cache decides when to
    try again.
    """

    def __init__(self, url: str | None, timeout_seconds: float = 10.0):
        """
        Initialize the feed source.

        Args:
            url: Published CSV URL; empty or None means not configured
            timeout_seconds: Request timeout in seconds
        """
        self.url = url or ""
        self.timeout = timeout_seconds

    @property
    def is_configured(self) -> bool:
        return bool(self.url)

    async def fetch(self) -> str:
        """
        Download the feed text.

        Raises:
            FetchError: on any transport error, timeout or non-2xx status
        """
        if not self.is_configured:
            raise FeedNotConfiguredError("Feed URL is not configured")

        logger.debug(f"Fetching shelf mapping feed from {self.url}")

        try:
            # httpx timeouts apply per read; this bounds the whole request
            async with asyncio.timeout(self.timeout):
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.get(self.url, follow_redirects=True)
                    response.raise_for_status()
                    return response.text
        except TimeoutError as e:
            raise FetchError(f"Feed request exceeded {self.timeout}s") from e
        except httpx.HTTPStatusError as e:
            raise FetchError(
                f"Feed returned HTTP {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            raise FetchError(f"Feed request failed: {e!r}") from e

    async def load_result(self) -> FeedParseResult:
        """Fetch and parse, keeping the dropped-row report."""
        text = await self.fetch()
        result = parse_feed(text)
        logger.info(
            f"Loaded {len(result.records)} mappings from feed"
            + (f" ({len(result.dropped)} rows dropped)" if result.dropped else "")
        )
        return result

    async def load(self) -> list[MappingRecord]:
        """Fetch and parse the feed into records."""
        result = await self.load_result()
        return result.records
