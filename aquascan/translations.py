"""UI labels for each supported output language."""

from typing import Dict

DEFAULT_LANGUAGE = "English"

TRANSLATIONS: Dict[str, Dict[str, str]] = {
    "English": {
        "title": "Water Diagnostics",
        "subtitle": "Smart assessment for safe drinking water.",
        "newScan": "New Analysis",
        "dashboard": "Results",
        "history": "Local Logs",
        "map": "Geo Insights",
        "offlineTip": "Works offline with saved logs",
    },
    "Spanish": {
        "title": "Diagnóstico de Agua",
        "subtitle": "Evaluación inteligente para agua potable segura.",
        "newScan": "Nuevo Análisis",
        "dashboard": "Resultados",
        "history": "Historial",
        "map": "Perspectivas Geo",
        "offlineTip": "Funciona sin conexión con registros",
    },
    "Hindi": {
        "title": "जल निदान",
        "subtitle": "सुरक्षित पेयजल के लिए स्मार्ट मूल्यांकन।",
        "newScan": "नया विश्लेषण",
        "dashboard": "परिणाम",
        "history": "इतिहास",
        "map": "भौगोलिक जानकारी",
        "offlineTip": "सहेजे गए लॉग के साथ ऑफ़लाइन काम करता है",
    },
}

SUPPORTED_LANGUAGES = tuple(TRANSLATIONS)


def is_supported(language: str) -> bool:
    return language in TRANSLATIONS


def labels_for(language: str) -> Dict[str, str]:
    """Labels for language, falling back to English."""
    return TRANSLATIONS.get(language, TRANSLATIONS[DEFAULT_LANGUAGE])
