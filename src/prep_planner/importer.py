"""Import day constraints from an academic calendar in various file formats."""
import json
import logging
import re
from datetime import date, timedelta
from pathlib import Path

from prep_planner.models import DayConstraint

logger = logging.getLogger(__name__)

# Keyword mapping for classifying a calendar line; first match wins
TYPE_KEYWORDS = [
    ("exam", ["exam", "mid-sem", "midsem", "end-sem", "endsem", "test", "assessment", "viva"]),
    ("holiday", ["holiday", "vacation", "break", "festival", "closed", "diwali", "christmas", "leave"]),
    ("lab", ["lab", "practical", "workshop"]),
    ("available", ["free day", "available", "no classes", "study day", "self study"]),
]

ISO_DATE = re.compile(r"\b(\d{4})-(\d{2})-(\d{2})\b")
DMY_DATE = re.compile(r"\b(\d{1,2})/(\d{1,2})/(\d{4})\b")
ANY_DATE = re.compile(rf"{ISO_DATE.pattern}|{DMY_DATE.pattern}")
RANGE_WORD = re.compile(r"^\s*(to|till|until|through|-|–)\s*$", re.IGNORECASE)
LEADING_JOINER = re.compile(r"^\s*(?:(?:to|till|until|through)\b)?[\s:|,\-–]*", re.IGNORECASE)


def read_file_content(file_path: str) -> str:
    path = Path(file_path)
    suffix = path.suffix.lower()

    if suffix in (".txt", ".md"):
        return path.read_text()
    elif suffix == ".json":
        data = json.loads(path.read_text())
        return json.dumps(data, indent=2) if isinstance(data, (dict, list)) else str(data)
    elif suffix in (".yaml", ".yml"):
        import yaml
        data = yaml.safe_load(path.read_text())
        return str(data)
    elif suffix == ".pdf":
        from PyPDF2 import PdfReader
        reader = PdfReader(file_path)
        return "\n".join(page.extract_text() or "" for page in reader.pages)
    elif suffix == ".docx":
        from docx import Document
        doc = Document(file_path)
        lines = [p.text for p in doc.paragraphs]
        for table in doc.tables:
            for row in table.rows:
                lines.append(" ".join(cell.text for cell in row.cells))
        return "\n".join(lines)
    elif suffix in (".html", ".htm"):
        from bs4 import BeautifulSoup
        html = path.read_text()
        return BeautifulSoup(html, "html.parser").get_text("\n")
    else:
        # Try reading as plain text
        return path.read_text()


def classify_text(text: str) -> str | None:
    """Day type for a calendar entry by keyword matching, or None."""
    lowered = text.lower()
    for day_type, keywords in TYPE_KEYWORDS:
        if any(re.search(rf"\b{re.escape(kw)}", lowered) for kw in keywords):
            return day_type
    return None


def _to_date(match: re.Match) -> date | None:
    groups = match.groups()
    try:
        if groups[0] is not None:
            return date(int(groups[0]), int(groups[1]), int(groups[2]))
        return date(int(groups[5]), int(groups[4]), int(groups[3]))
    except ValueError:
        return None


def _expand(start: date, end: date) -> list[date]:
    if start > end:
        start, end = end, start
    return [start + timedelta(days=n) for n in range((end - start).days + 1)]


def dates_in_line(line: str) -> list[date]:
    """Dates mentioned on one line. ``A to B`` is expanded to every day in between."""
    matches = list(ANY_DATE.finditer(line))
    found = []
    i = 0
    while i < len(matches):
        first = _to_date(matches[i])
        if first is None:
            i += 1
            continue
        if i + 1 < len(matches) and RANGE_WORD.match(line[matches[i].end():matches[i + 1].start()]):
            second = _to_date(matches[i + 1])
            if second is not None:
                found.extend(_expand(first, second))
                i += 2
                continue
        found.append(first)
        i += 1
    return found


def parse_constraints(text: str) -> list[DayConstraint]:
    """Scan free text line by line. Lines without a date or a known keyword are skipped."""
    by_date: dict[date, DayConstraint] = {}
    for raw in text.splitlines():
        line = raw.strip()
        if not line:
            continue
        days = dates_in_line(line)
        if not days:
            continue
        day_type = classify_text(ANY_DATE.sub(" ", line))
        if day_type is None:
            logger.debug("Skipping unclassified calendar line: %s", line)
            continue
        description = LEADING_JOINER.sub("", ANY_DATE.sub("", line)).strip()
        for day in days:
            by_date[day] = DayConstraint(date=day, type=day_type, description=description)
    return sorted(by_date.values(), key=lambda c: c.date)


def _structured_entries(data) -> list[dict] | None:
    if isinstance(data, dict):
        data = data.get("constraints")
    if isinstance(data, list) and all(isinstance(e, dict) for e in data):
        return data
    return None


def constraints_from_entries(entries: list[dict]) -> list[DayConstraint]:
    """Entries carry ``date`` (or ``start``/``end``), ``type`` and ``description``."""
    by_date: dict[date, DayConstraint] = {}
    for entry in entries:
        description = str(entry.get("description") or "")
        day_type = entry.get("type") or classify_text(description)
        if day_type is None:
            continue
        start = entry.get("date") or entry.get("start")
        end = entry.get("end") or start
        try:
            days = _expand(date.fromisoformat(str(start)), date.fromisoformat(str(end)))
        except ValueError:
            logger.warning("Skipping calendar entry with bad date: %r", entry)
            continue
        for day in days:
            by_date[day] = DayConstraint(date=day, type=str(day_type).lower(), description=description)
    return sorted(by_date.values(), key=lambda c: c.date)


def read_constraints(file_path: str) -> list[DayConstraint]:
    path = Path(file_path)
    suffix = path.suffix.lower()
    if suffix == ".json":
        entries = _structured_entries(json.loads(path.read_text()))
        if entries is not None:
            return constraints_from_entries(entries)
    elif suffix in (".yaml", ".yml"):
        import yaml
        entries = _structured_entries(yaml.safe_load(path.read_text()))
        if entries is not None:
            return constraints_from_entries(entries)
    return parse_constraints(read_file_content(file_path))


def import_file(planner, file_path: str) -> dict:
    """Import a calendar file into a StudyPlanner. Entries that fail validation are skipped."""
    added, skipped = 0, 0
    for constraint in read_constraints(file_path):
        try:
            planner.add_constraint(constraint)
            added += 1
        except ValueError as e:
            logger.warning("Skipping constraint %s: %s", constraint.date, e)
            skipped += 1
    logger.info("Imported %d constraint(s) from %s", added, Path(file_path).name)
    return {"filename": Path(file_path).name, "added": added, "skipped": skipped}
