"""
Utilitaire d'affichage des montants ISK.
- format_isk(1_250_000_000) → "1.25b"
- Suffixes t/b/m/k (2 décimales) choisis sur la valeur absolue ; sinon entier arrondi.
"""

_UNITS = (
    (1_000_000_000_000.0, "t"),
    (1_000_000_000.0, "b"),
    (1_000_000.0, "m"),
    (1_000.0, "k"),
)


def format_isk(amount: float) -> str:
    magnitude = abs(amount)
    for threshold, suffix in _UNITS:
        if magnitude >= threshold:
            return f"{amount / threshold:.2f}{suffix}"
    return f"{amount:.0f}"
