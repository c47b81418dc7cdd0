"""Resume parsing: raw document -> ParsedResume.

Extraction is best effort. Missing fields stay empty; only documents that
cannot be read at all raise ``ParseFailure``.
"""

import logging
import re
from datetime import date
from typing import Iterable, Optional, Protocol

import phonenumbers

from core.exceptions import ParseFailure
from core.parsers.document_parser import UnsupportedDocumentType, extract_text
from evaluation.types import ParsedResume

logger = logging.getLogger(__name__)

DEFAULT_PHONE_REGION = "US"

SECTION_HEADINGS = {
    "experience": (
        "experience",
        "work experience",
        "professional experience",
        "employment",
        "employment history",
        "work history",
        "career history",
    ),
    "education": (
        "education",
        "academic background",
        "academic qualifications",
        "qualifications",
    ),
    "skills": (
        "skills",
        "technical skills",
        "key skills",
        "core competencies",
        "technologies",
        "tools & technologies",
    ),
    "summary": ("summary", "profile", "professional summary", "objective", "about me"),
    "other": (
        "projects",
        "certifications",
        "languages",
        "interests",
        "hobbies",
        "references",
        "awards",
        "publications",
        "contact",
    ),
}

_HEADING_LOOKUP = {
    heading: section for section, headings in SECTION_HEADINGS.items() for heading in headings
}

# Skills recognised anywhere in the text, on top of the role's own key skills.
DEFAULT_SKILLS = (
    "Python", "Java", "JavaScript", "TypeScript", "Golang", "Rust", "C++", "C#", "Ruby",
    "PHP", "Kotlin", "Scala", "SQL", "Bash",
    "Django", "Flask", "FastAPI", "Spring Boot", "React", "Angular", "Vue", "Node.js",
    "PostgreSQL", "MySQL", "MongoDB", "Redis", "Elasticsearch", "Kafka",
    "AWS", "Azure", "GCP", "Docker", "Kubernetes", "Terraform", "Ansible",
    "Git", "Linux", "REST API", "GraphQL", "Microservices", "CI/CD",
    "Machine Learning", "Deep Learning", "NLP", "Pandas", "NumPy",
    "TensorFlow", "PyTorch", "Scikit-learn", "Spark", "Airflow",
    "Excel", "Tableau", "Power BI", "Agile", "Scrum",
)

EMAIL_PATTERN = re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b")
# Capitalised name word: "Jane", "J.", "McDonald", "Mary-Jane", "O'Brien"
NAME_WORD_PATTERN = re.compile(r"[A-Z](?:\.|[a-z]+(?:-?[A-Z][a-z]+)*|'[A-Z][a-z]+)")
BULLET_PATTERN = re.compile(r"^\s*(?:[-*•●▪▸◦·]|\d+[.)])\s+")
SKILL_SPLIT_PATTERN = re.compile(r"[,;|•·●▪]|\s{2,}|\band\b")
DEGREE_PATTERN = re.compile(
    r"\b(bachelor|master|ph\.?\s?d|doctorate|mba|b\.?\s?sc|m\.?\s?sc|b\.?\s?tech|"
    r"m\.?\s?tech|b\.?\s?a|m\.?\s?a|b\.?\s?eng|m\.?\s?eng|associate degree|diploma|degree)\b",
    re.IGNORECASE,
)
LOCATION_LABEL_PATTERN = re.compile(r"^(?:location|address|based in)\s*[:\-]\s*(.+)$", re.IGNORECASE)
CITY_REGION_PATTERN = re.compile(r"^([A-Z][A-Za-z .'-]{1,40}),\s*([A-Z][A-Za-z .'-]{1,40})$")
EXPLICIT_YEARS_PATTERN = re.compile(
    r"(\d{1,2}(?:\.\d)?)\s*\+?\s*(?:years?|yrs?)\b(?:\s+of)?(?:\s+\w+){0,3}?\s+experience",
    re.IGNORECASE,
)
_MONTHS = "jan|feb|mar|apr|may|jun|jul|aug|sep|sept|oct|nov|dec"
DATE_RANGE_PATTERN = re.compile(
    rf"(?:(?P<start_month>{_MONTHS})[a-z]*\.?\s+)?(?P<start_year>(?:19|20)\d{{2}})\s*"
    rf"(?:-|–|—|to)\s*(?:(?:(?P<end_month>{_MONTHS})[a-z]*\.?\s+)?(?P<end_year>(?:19|20)\d{{2}})|"
    rf"(?P<present>present|current|now|today))",
    re.IGNORECASE,
)
_MONTH_NUMBERS = {
    name: index
    for index, name in enumerate(
        ("jan", "feb", "mar", "apr", "may", "jun", "jul", "aug", "sep", "oct", "nov", "dec"),
        start=1,
    )
}


class DocumentSource(Protocol):
    async def read(self, file_ref: str) -> bytes: ...


async def parse_resume(
    file_ref: str,
    file_type: str,
    store: DocumentSource,
    skill_vocabulary: Optional[Iterable[str]] = None,
) -> ParsedResume:
    """Read a stored resume and extract its structured fields.

    Args:
        file_ref: Reference understood by ``store``
        file_type: Declared type (pdf, doc or docx)
        store: Document storage to read raw bytes from
        skill_vocabulary: Extra skills to look for, normally the role's key skills

    Raises:
        ParseFailure: If the document is unsupported, unreadable or empty
        StorageUnavailable: If the document cannot be fetched
    """
    data = await store.read(file_ref)
    return await parse_resume_bytes(data, file_type, file_ref=file_ref, skill_vocabulary=skill_vocabulary)


async def parse_resume_bytes(
    data: bytes,
    file_type: str,
    file_ref: str = "<upload>",
    skill_vocabulary: Optional[Iterable[str]] = None,
) -> ParsedResume:
    if not data:
        raise ParseFailure(file_ref, "document is empty")

    try:
        text = await extract_text(data, file_type)
    except UnsupportedDocumentType as exc:
        raise ParseFailure(file_ref, str(exc)) from exc
    except Exception as exc:
        logger.warning("Text extraction failed for %s: %s", file_ref, exc)
        raise ParseFailure(file_ref, "document could not be read") from exc

    if not text.strip():
        raise ParseFailure(file_ref, "document contains no extractable text")

    parsed = parse_resume_text(text, skill_vocabulary=skill_vocabulary)
    logger.info(
        "Parsed resume %s: %d skills, %d experience entries, %d education entries",
        file_ref,
        len(parsed.skills),
        len(parsed.experience),
        len(parsed.education),
    )
    return parsed


def parse_resume_text(
    text: str,
    skill_vocabulary: Optional[Iterable[str]] = None,
    today: Optional[date] = None,
) -> ParsedResume:
    """Extract structured fields from plain resume text."""
    lines = [line.strip() for line in text.splitlines()]
    sections = split_sections(lines)

    experience = _group_entries(sections.get("experience", []))
    education = _group_entries(sections.get("education", []))
    if not education:
        education = [line for line in lines if line and DEGREE_PATTERN.search(line)]

    return ParsedResume(
        name=extract_name(lines),
        email=extract_email(text),
        phone=extract_phone(text),
        experience=experience,
        education=education,
        skills=extract_skills(text, sections.get("skills", []), skill_vocabulary),
        location=extract_location(lines),
        years_of_experience=extract_years_of_experience(
            text, sections.get("experience", []), today=today
        ),
    )


def split_sections(lines: list[str]) -> dict[str, list[str]]:
    """Group lines under the section heading that precedes them.

    Lines before the first heading are kept under ``header``. A heading
    followed by a colon and content ("Skills: Python, SQL") contributes the
    content as the first line of its section.
    """
    sections: dict[str, list[str]] = {"header": []}
    current = "header"

    for line in lines:
        if not line:
            continue
        heading, _, rest = line.partition(":")
        section = _HEADING_LOOKUP.get(heading.strip().lower().rstrip(" -"))
        if section and len(heading) <= 40:
            current = section
            sections.setdefault(current, [])
            if rest.strip():
                sections[current].append(rest.strip())
            continue
        sections.setdefault(current, []).append(line)

    return sections


def extract_name(lines: list[str]) -> Optional[str]:
    for line in [line for line in lines if line][:5]:
        if EMAIL_PATTERN.search(line) or any(ch.isdigit() for ch in line):
            continue
        if line.partition(":")[0].strip().lower() in _HEADING_LOOKUP:
            continue
        if re.search(r"resume|curriculum|vitae", line, re.IGNORECASE):
            continue
        words = line.split()
        if 2 <= len(words) <= 4 and all(NAME_WORD_PATTERN.fullmatch(w) for w in words):
            return line
    return None


def extract_email(text: str) -> Optional[str]:
    match = EMAIL_PATTERN.search(text)
    return match.group(0) if match else None


def extract_phone(text: str, region: str = DEFAULT_PHONE_REGION) -> Optional[str]:
    for match in phonenumbers.PhoneNumberMatcher(text, region):
        return phonenumbers.format_number(
            match.number, phonenumbers.PhoneNumberFormat.INTERNATIONAL
        )
    return None


def extract_location(lines: list[str]) -> Optional[str]:
    for line in lines:
        labelled = LOCATION_LABEL_PATTERN.match(line)
        if labelled:
            return labelled.group(1).strip()

    for line in [line for line in lines if line][:6]:
        for segment in re.split(r"[|•·]", line):
            segment = segment.strip()
            if CITY_REGION_PATTERN.match(segment) and not EMAIL_PATTERN.search(segment):
                return segment
    return None


def extract_skills(
    text: str,
    skill_lines: list[str],
    skill_vocabulary: Optional[Iterable[str]] = None,
) -> list[str]:
    """Skills listed in the skills section, then vocabulary hits elsewhere."""
    skills: list[str] = []
    seen: set[str] = set()

    def add(skill: str) -> None:
        key = skill.lower()
        if key not in seen:
            seen.add(key)
            skills.append(skill)

    for line in skill_lines:
        for piece in SKILL_SPLIT_PATTERN.split(BULLET_PATTERN.sub("", line)):
            piece = piece.strip(" .:-()")
            if piece and len(piece) <= 40:
                add(piece)

    vocabulary = list(skill_vocabulary or []) + list(DEFAULT_SKILLS)
    for skill in vocabulary:
        skill = skill.strip()
        if skill and skill.lower() not in seen and contains_term(text, skill):
            add(skill)

    return skills


def contains_term(text: str, term: str) -> bool:
    """Case-insensitive whole-term search that copes with C++, C#, Node.js."""
    pattern = rf"(?<![\w+#]){re.escape(term)}(?![\w+#])"
    return re.search(pattern, text, re.IGNORECASE) is not None


def extract_years_of_experience(
    text: str,
    experience_lines: list[str],
    today: Optional[date] = None,
) -> Optional[float]:
    """Explicit "N years of experience" wins; otherwise span of dated roles."""
    explicit = [float(m.group(1)) for m in EXPLICIT_YEARS_PATTERN.finditer(text)]
    explicit = [years for years in explicit if 0 < years < 60]
    if explicit:
        return max(explicit)

    today = today or date.today()
    spans: list[tuple[int, int]] = []
    for match in DATE_RANGE_PATTERN.finditer("\n".join(experience_lines)):
        start = _month_index(match.group("start_year"), match.group("start_month"), 1)
        if match.group("present"):
            end = today.year * 12 + today.month
        else:
            end = _month_index(match.group("end_year"), match.group("end_month"), 12)
        if end >= start:
            spans.append((start, end))

    if not spans:
        return None

    months = _merged_months(spans)
    return round(months / 12, 1)


def _month_index(year: str, month: Optional[str], default_month: int) -> int:
    number = _MONTH_NUMBERS.get(month[:3].lower(), default_month) if month else default_month
    return int(year) * 12 + number


def _merged_months(spans: list[tuple[int, int]]) -> int:
    total = 0
    current_start, current_end = None, None
    for start, end in sorted(spans):
        if current_end is None or start > current_end:
            if current_end is not None:
                total += current_end - current_start
            current_start, current_end = start, end
        else:
            current_end = max(current_end, end)
    total += current_end - current_start
    return total


def _group_entries(lines: list[str]) -> list[str]:
    """Fold bullet lines into the entry line above them."""
    entries: list[str] = []
    for line in lines:
        if BULLET_PATTERN.match(line) and entries:
            entries[-1] = f"{entries[-1]}; {BULLET_PATTERN.sub('', line).strip()}"
        else:
            entries.append(BULLET_PATTERN.sub("", line).strip())
    return [entry for entry in entries if entry]
