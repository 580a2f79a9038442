from enum import Enum


class SermonType(Enum):
    PARABLE = "parable"
    SCRIPTURE = "scripture"
    PROPHECY = "prophecy"
    TESTIMONY = "testimony"
    EXHORTATION = "exhortation"


SERMON_EMOJI = {
    SermonType.PARABLE: "📖",
    SermonType.SCRIPTURE: "📜",
    SermonType.PROPHECY: "🔮",
    SermonType.TESTIMONY: "💭",
    SermonType.EXHORTATION: "⚡",
}
