"""Per-language text for complaint letters: prompts, boilerplate, keywords
and date/time rendering.

Each language is a plain dict in ``LANGUAGES``. Adding a language means adding
one entry here; the generator looks everything up by language code and falls
back to English for unknown codes.
"""
from datetime import datetime
from typing import Dict, Any, List

DEFAULT_LANGUAGE = "en"

EN_MONTHS = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)


def _hour12(dt: datetime) -> int:
    return dt.hour % 12 or 12


def format_date_en(dt: datetime) -> str:
    """``MMMM d, yyyy``, e.g. ``October 5, 2026``."""
    return f"{EN_MONTHS[dt.month - 1]} {dt.day}, {dt.year}"


def format_time_en(dt: datetime) -> str:
    """Two-digit 12h clock, e.g. ``09:05 AM``."""
    period = "AM" if dt.hour < 12 else "PM"
    return f"{_hour12(dt):02d}:{dt.minute:02d} {period}"


def format_date_ta(dt: datetime) -> str:
    """ta-IN short date, e.g. ``5/10/2026``."""
    return f"{dt.day}/{dt.month}/{dt.year}"


def format_time_ta(dt: datetime) -> str:
    """ta-IN 12h clock with the day period first, e.g. ``முற்பகல் 09:05``."""
    period = "முற்பகல்" if dt.hour < 12 else "பிற்பகல்"
    return f"{period} {_hour12(dt):02d}:{dt.minute:02d}"


EN_PROMPT = """You are a professional complaint letter writing assistant. The user has provided the following complaint:

"{text}"

Your task:
1. Identify the complaint category (Water Supply, Electricity, Road, Garbage, Drainage, Street Light, etc.)
2. Convert this EXACT complaint into a formal letter format in English
3. Use the ACTUAL details from the user's text - do not add generic information
4. Keep the user's specific concerns, locations, names, dates, and all details mentioned
5. Add proper greeting and closing
6. Make it professional while preserving the user's original complaint details

IMPORTANT: Base the complaint ONLY on what the user said. Do not write a generic template or add placeholder information like [City Name] or [Complainant].

Format the response as:
CATEGORY: [Category in English]
---
[Full complaint letter in English based on user's actual text]"""

TA_PROMPT = """You are a Tamil complaint letter writing assistant. The user has provided the following complaint text in Tamil:

"{text}"

Your task:
1. Identify the complaint category (தண்ணீர், மின்சாரம், சாலை, குப்பை, வடிகால், தெரு விளக்கு, etc.)
2. Convert this EXACT complaint into a formal letter format in Tamil
3. Use the ACTUAL details from the user's text - do not add generic information
4. Keep the user's specific concerns, locations, and details
5. Add proper greeting and closing
6. Make it professional while preserving the user's original complaint details

IMPORTANT: Base the complaint ONLY on what the user said. Do not write a generic template or add placeholder information.

Format the response as:
CATEGORY: [Category in Tamil]
---
[Full complaint letter in Tamil based on user's actual text]"""

EN_LETTER = """To,
The Municipal Corporation Officer

Subject: Complaint Regarding {category}

Dear Sir/Madam,

I would like to bring to your attention the following matter:

{description}

I kindly request you to look into this matter urgently and take necessary action to resolve this issue at the earliest possible time.

Thank you for your attention to this matter.

Yours sincerely,
Concerned Citizen"""

TA_LETTER = """பெறுநர்,
நகராட்சி அதிகாரி

பொருள்: {category} தொடர்பான புகார்

அன்புள்ள ஐயா/அம்மா,

பின்வரும் விஷயத்தை உங்கள் கவனத்திற்கு கொண்டு வர விரும்புகிறேன்:

{description}

இந்த விஷயத்தை அவசரமாக பார்த்து தேவையான நடவடிக்கை எடுக்க வேண்டுகிறேன்.

உங்கள் கவனத்திற்கு நன்றி.

இவர்கள் சார்பில்,
புகார்தாரர்"""


LANGUAGES: Dict[str, Dict[str, Any]] = {
    "en": {
        "speech_code": "en-US",
        "title": "COMPLAINT LETTER",
        "labels": {
            "id": "Complaint ID",
            "date": "Date",
            "time": "Time",
            "category": "Category",
            "status": "Status",
        },
        "pending": "PENDING REVIEW",
        "default_category": "Other",
        # order matters: first group with a hit wins
        "categories": [
            (("water", "supply", "tap"), "Water Supply"),
            (("electricity", "power", "current"), "Electricity"),
            (("road", "street", "pothole"), "Road"),
            (("garbage", "waste", "trash"), "Garbage"),
            (("drainage", "sewage", "drain"), "Drainage"),
            (("light", "lamp", "street light"), "Street Light"),
        ],
        "prompt": EN_PROMPT,
        "letter": EN_LETTER,
        "format_date": format_date_en,
        "format_time": format_time_en,
    },
    "ta": {
        "speech_code": "ta-IN",
        "title": "புகார் கடிதம்",
        "labels": {
            "id": "புகார் எண்",
            "date": "தேதி",
            "time": "நேரம்",
            "category": "வகை",
            "status": "நிலை",
        },
        "pending": "மதிப்பாய்வு நிலுவையில் உள்ளது",
        "default_category": "பிற",
        "categories": [
            (("தண்ணீர்", "குழாய்"), "தண்ணீர்"),
            (("மின்சாரம்", "கரண்ட்"), "மின்சாரம்"),
            (("சாலை", "தெரு"), "சாலை"),
            (("குப்பை", "கழிவு"), "குப்பை"),
            (("வடிகால்", "சாக்கடை"), "வடிகால்"),
            (("விளக்கு", "தெரு விளக்கு"), "தெரு விளக்கு"),
        ],
        "prompt": TA_PROMPT,
        "letter": TA_LETTER,
        "format_date": format_date_ta,
        "format_time": format_time_ta,
    },
}


def supported_languages() -> List[str]:
    return list(LANGUAGES)


def is_supported(language: str) -> bool:
    return language in LANGUAGES


def get_language(language: str) -> Dict[str, Any]:
    """Return the language pack for ``language``, English when unknown."""
    return LANGUAGES.get(language) or LANGUAGES[DEFAULT_LANGUAGE]


def default_category(language: str) -> str:
    return get_language(language)["default_category"]
