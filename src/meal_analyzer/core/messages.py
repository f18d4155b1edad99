"""User-facing error messages, one per terminal error kind."""

from meal_analyzer.core.exceptions import APIError

DEFAULT_LOCALE = "en"

USER_MESSAGES: dict[str, dict[str, str]] = {
    "en": {
        "INVALID_INPUT": "The submitted meal could not be read. Please check your input.",
        "CONFIGURATION_ERROR": "The analysis service is not configured. Contact the administrator.",
        "UNKNOWN_PROVIDER_TYPE": "The analysis service is not configured. Contact the administrator.",
        "MISSING_CONFIG": "The analysis service is not configured. Contact the administrator.",
        "NO_PROVIDER_AVAILABLE": "No AI service is available right now. Please try again later.",
        "PROVIDER_NOT_FOUND": "The selected AI service is not available.",
        "NO_CAPABLE_PROVIDER": "This type of input is not supported right now. Try describing the meal in text.",
        "ALL_PROVIDERS_FAILED": "We could not analyze the meal. Please try again or describe it more specifically.",
        "CANCELLED": "The analysis was cancelled.",
    },
    "cs": {
        "INVALID_INPUT": "Zadaný vstup se nepodařilo načíst. Zkontrolujte jej prosím.",
        "CONFIGURATION_ERROR": "Služba analýzy není nakonfigurována. Kontaktujte správce systému.",
        "UNKNOWN_PROVIDER_TYPE": "Služba analýzy není nakonfigurována. Kontaktujte správce systému.",
        "MISSING_CONFIG": "Služba analýzy není nakonfigurována. Kontaktujte správce systému.",
        "NO_PROVIDER_AVAILABLE": "Žádná AI služba není momentálně dostupná. Zkuste to prosím později.",
        "PROVIDER_NOT_FOUND": "Vybraná AI služba není dostupná.",
        "NO_CAPABLE_PROVIDER": "Tento typ vstupu není momentálně podporován. Zkuste jídlo popsat textem.",
        "ALL_PROVIDERS_FAILED": "Jídlo se nepodařilo analyzovat. Zkuste to znovu nebo jej popište konkrétněji.",
        "CANCELLED": "Analýza byla zrušena.",
    },
}

GENERIC_MESSAGES = {
    "en": "Something went wrong. Please try again.",
    "cs": "Došlo k neznámé chybě. Zkuste to prosím znovu.",
}


def user_message(error: APIError, locale: str = DEFAULT_LOCALE) -> str:
    """
    Get the localized user message for a terminal error.

    English input validation messages are written for end users already and
    are returned as-is; everything else maps by error code so vendor text
    never leaks into the response.
    """
    if error.error_code == "INVALID_INPUT" and locale == DEFAULT_LOCALE and error.message:
        return error.message

    messages = USER_MESSAGES.get(locale, USER_MESSAGES[DEFAULT_LOCALE])
    if error.error_code in messages:
        return messages[error.error_code]
    return GENERIC_MESSAGES.get(locale, GENERIC_MESSAGES[DEFAULT_LOCALE])
