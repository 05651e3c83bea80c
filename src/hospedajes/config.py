from dataclasses import dataclass


class ConfigValidationError(ValueError):
    """Raised when a ReconstructionConfig field has an invalid value."""


def _check_range(
    name: str, value: float, lo: float, hi: float, *, inclusive: bool = True
) -> None:
    if inclusive:
        if not (lo <= value <= hi):
            raise ConfigValidationError(f"{name}={value} out of range [{lo}, {hi}]")
    else:
        if not (lo < value < hi):
            raise ConfigValidationError(f"{name}={value} out of range ({lo}, {hi})")


def _check_positive(name: str, value: float) -> None:
    if value <= 0:
        raise ConfigValidationError(f"{name}={value} must be > 0")


def _check_non_negative(name: str, value: float) -> None:
    if value < 0:
        raise ConfigValidationError(f"{name}={value} must be >= 0")


@dataclass
class ReconstructionConfig:
    """Tunables for positional table reconstruction."""

    # ── Token extraction (pdfplumber) ──────────────────────────────────
    # Horizontal / vertical tolerance passed to ``Page.extract_words``.
    x_tolerance: float = 3.0
    y_tolerance: float = 3.0
    # Treat spaces as characters so a whole table cell comes back as one
    # fragment instead of one fragment per word.
    keep_blank_chars: bool = True
    # Strip U+0000–U+001F control characters and the BOM from fragments.
    filter_control_chars: bool = True
    # NFKC-normalise fragment text.
    normalize_unicode: bool = True

    # ── Row grouping ───────────────────────────────────────────────────
    # Max |dy| (pts) between a token and an existing row key to join it.
    row_y_tolerance: float = 2.0

    # ── Lexical classification ─────────────────────────────────────────
    # A Name-candidate must be longer than this many characters.
    min_name_candidate_length: int = 3

    # ── Column reconciliation ──────────────────────────────────────────
    # Name fragments shorter than this may be merged with their neighbour.
    name_merge_max_length: int = 20
    # Forward window (slots) searched when matching an email to a name.
    email_match_window: int = 2
    # Leading characters of the email local part compared against names.
    email_match_prefix: int = 4
    # Below this share of rows carrying two or more field roles, a
    # section is treated as un-rowed column streams.
    min_multi_field_row_ratio: float = 0.25
    enable_column_fallback: bool = True

    # ── Document checks ────────────────────────────────────────────────
    # Run the cross-section checks (duplicates, records without contact).
    enable_document_checks: bool = True

    # ── Degraded text mode ─────────────────────────────────────────────
    # Split a trailing exact category term off a text-mode fragment.
    text_split_trailing_category: bool = True

    # ── Record synthesis ───────────────────────────────────────────────
    # Records whose cleaned name is shorter than this are dropped.  The
    # default keeps every emitted name at three characters or more.
    min_name_length: int = 3
    phone_min_digits: int = 7
    phone_max_digits: int = 8
    # Dialable prefix re-added to local mobile numbers.
    country_prefix: str = "+507"
    mobile_digits: int = 8
    mobile_leading_digits: str = "6"
    default_category: str = "Hospedaje"
    map_search_url: str = "https://www.google.com/maps/search/?api=1&query="
    # Appended to map queries; also the region label when a record has none.
    country_label: str = "Panamá"
    source_label: str = "ATP"

    def __post_init__(self) -> None:
        """Validate field ranges to catch misconfiguration early."""
        _check_range(
            "min_multi_field_row_ratio", self.min_multi_field_row_ratio, 0.0, 1.0
        )

        for name in ("x_tolerance", "y_tolerance"):
            _check_positive(name, getattr(self, name))

        _check_non_negative("row_y_tolerance", self.row_y_tolerance)

        _pos_ints = [
            "min_name_length",
            "name_merge_max_length",
            "email_match_prefix",
            "phone_min_digits",
            "phone_max_digits",
            "mobile_digits",
        ]
        for name in _pos_ints:
            val = getattr(self, name)
            if val < 1:
                raise ConfigValidationError(f"{name}={val} must be >= 1")

        _nn_ints = ["min_name_candidate_length", "email_match_window"]
        for name in _nn_ints:
            _check_non_negative(name, getattr(self, name))

        if self.phone_min_digits > self.phone_max_digits:
            raise ConfigValidationError(
                f"phone_min_digits ({self.phone_min_digits}) must be <= "
                f"phone_max_digits ({self.phone_max_digits})"
            )

        if self.mobile_leading_digits and not self.mobile_leading_digits.isdigit():
            raise ConfigValidationError(
                f"mobile_leading_digits={self.mobile_leading_digits!r} must be digits"
            )

        if not self.default_category.strip():
            raise ConfigValidationError("default_category must not be blank")
