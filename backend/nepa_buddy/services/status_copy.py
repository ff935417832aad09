"""Presentation lookup tables for statuses: push copy and history captions."""

STATUS_COPY: dict[str, dict[str, str]] = {
    "on": {
        "title": "EHEN!!! UP NEPA!!! 🎉⚡️",
        "body": "Light don return for {zone}! Everybody dey plug in. ({confidence} confidence)",
    },
    "off": {
        "title": "Chai! Light don go again 😩🔌",
        "body": "Many buddies for {zone} just comot charger. NEPA/Disco don carry am! ({confidence} confidence)",
    },
    "recovering": {
        "title": "Small small... light dey show face 👀",
        "body": "Some buddies for {zone} don see light! Still waiting for more people to confirm.",
    },
    "unknown": {
        "title": "Still gathering buddies... 🤔",
        "body": "We need more people for {zone} to confirm power status.",
    },
}

OUTAGE_CAPTIONS = [
    "That Monday morning wahala 😩",
    "NEPA no send anybody message 💀",
    "Gen don save the day again 💨",
    "We take style survive am 💪",
    "Diesel price no gree us rest 😭",
    "The usual Lagos vibes 🏙️",
    "Inverter gang came through 🔋",
    "Candlelight dinner no be by force 🕯️",
]


def render(status: str, zone: str, confidence: str) -> tuple[str, str]:
    copy = STATUS_COPY.get(status, STATUS_COPY["unknown"])
    return copy["title"], copy["body"].format(zone=zone, confidence=confidence.capitalize())
