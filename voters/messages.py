"""User-facing text: localized error strings and the voter message template."""

from utils.strings import or_dash

# ── Localized error strings (Marathi) ─────────────────────────────────────────

FETCH_TIMEOUT = "विनंती टाइमआउट! कृपया नंतर पुन्हा प्रयत्न करा।"
FETCH_NETWORK = "नेटवर्क त्रुटी: सर्व्हरशी कनेक्ट होऊ शकले नाही। कृपया इंटरनेट कनेक्शन तपासा।"
FETCH_BAD_DATA = "API कडून डेटा मिळवण्यात समस्या आली।"


def fetch_http_error(status: int) -> str:
    return f"सर्व्हर त्रुटी: {status}. कृपया नंतर पुन्हा प्रयत्न करा।"


def fetch_other_error(detail: str) -> str:
    return f"त्रुटी: {detail or 'डेटा लोड करण्यात समस्या आली।'}"


INVALID_MOBILE = "अवैध मोबाईल नंबर! कृपया 6, 7, 8 किंवा 9 ने सुरू होणारा 10 अंकी नंबर टाका."
UPDATE_TIMEOUT = "अपडेट टाइमआउट! कृपया पुन्हा प्रयत्न करा."
UPDATE_NETWORK = "नेटवर्क त्रुटी: अपडेट सर्व्हरशी कनेक्ट होऊ शकले नाही."
UPDATE_BAD_RESPONSE = "सर्व्हरकडून अवैध प्रतिसाद मिळाला. कृपया नंतर पुन्हा प्रयत्न करा."
EDIT_CONFLICT = "हा बदल आता संपादित होत नाही. कृपया पुन्हा संपादन सुरू करा."


def update_rejected(detail: str) -> str:
    return f"अपडेट अयशस्वी: {detail}"


SEND_NO_NUMBER = "या मतदाराचा वैध मोबाईल नंबर उपलब्ध नाही."
SEND_NOT_CONFIGURED = "WhatsApp सेवा कॉन्फिगर केलेली नाही."
SEND_IN_PROGRESS = "संदेश पाठवणे आधीच सुरू आहे. कृपया पूर्ण होईपर्यंत थांबा."


# ── Voter detail message ──────────────────────────────────────────────────────

_VOTER_TEMPLATE = (
    "🗳️ मतदार माहिती\n"
    "\n"
    "अनु क्र.: {serial}\n"
    "घर क्र.: {house}\n"
    "नाव (मराठी): {name_local}\n"
    "नाव (इंग्रजी): {name_latin}\n"
    "लिंग: {gender}\n"
    "वय: {age}\n"
    "मतदान कार्ड क्र.: {voter_card}\n"
    "मोबाईल नं.: {mobile}"
)


def compose_voter_message(record) -> str:
    """Render the fixed multi-line voter detail message for *record*.

    Every absent value is shown as "-". The local gender label is preferred
    over the Latin one, matching what the results table displays.
    """
    return _VOTER_TEMPLATE.format(
        serial=or_dash(record.serial_number),
        house=or_dash(record.house_number),
        name_local=or_dash(record.name_local),
        name_latin=or_dash(record.name_latin),
        gender=or_dash(record.gender_local or record.gender_latin),
        age=or_dash(record.age),
        voter_card=or_dash(record.voter_card_id),
        mobile=or_dash(record.mobile_number),
    )
