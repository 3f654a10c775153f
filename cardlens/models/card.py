from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class CardRecord:
    """
    A reference catalog entry.

    Loaded once at startup and never mutated.

    Attributes:
        id: Stable identifier in "<set-code>-<number>" form (e.g., "xy1-4")
        name: Display name as printed (e.g., "Pikachu VMAX")
        hp: Printed hit points, None for trainers and energy
        set_name: Name of the expansion (e.g., "Vivid Voltage")
        caption: Free-text description; mentions attacks as "the attack <Name>"
        image_url: Reference image, either an http(s) URL or a local path
    """

    id: str
    name: str
    hp: int | None = None
    set_name: str = ""
    caption: str = ""
    image_url: str | None = None

    @property
    def number(self) -> str:
        """Trailing segment of the identifier ("xy1-04" -> "04")."""
        return self.id.rsplit("-", 1)[-1]
