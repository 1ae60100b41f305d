"""
Metric cards shown across the top of the dashboard.
"""

from .models import MetricCard, MetricSnapshot

CARD_COLORS = (
    "blue",
    "green",
    "violet",
    "purple",
    "yellow",
    "red",
    "indigo",
    "orange",
    "teal",
    "cyan",
    "emerald",
    "pink",
)

FALLBACK_COLOR = "white"


def card_color(color: str) -> str:
    """Colors outside the palette render as plain white."""
    return color if color in CARD_COLORS else FALLBACK_COLOR


def build_cards(snapshot: MetricSnapshot) -> list[MetricCard]:
    """Cards in display order."""
    return [
        MetricCard("Total Users", str(snapshot.user_count), "blue"),
        MetricCard("Total Memes", str(snapshot.meme_count), "green"),
        MetricCard("Dynamo Memes", str(snapshot.meme_dynamo_count), "violet"),
        MetricCard("Memes Posted Last 24h", str(snapshot.recent_count), "purple"),
        MetricCard("Storage Used", snapshot.storage_label, "yellow"),
        MetricCard("Total Interactions", str(snapshot.interaction_count), "red"),
        MetricCard("New Users Today", f"+{snapshot.new_users_count}", "indigo"),
        MetricCard("Open Feedback", str(snapshot.open_feedback_count), "orange"),
        MetricCard("Notifications", str(snapshot.notification_count), "teal"),
        MetricCard("UserLikes", str(snapshot.like_count), "cyan"),
        MetricCard("Comments", str(snapshot.comment_count), "emerald"),
        MetricCard("Conversations", str(snapshot.conversation_count), "pink"),
    ]
