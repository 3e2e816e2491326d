"""Error taxonomy shared by the pipeline, scoring and rendering layers."""


class PhotoJudgeError(Exception):
    """Base class for all judging-tool errors."""


class InvalidIdentity(PhotoJudgeError):
    """A spreadsheet row or scanned file has no usable identity key."""

    def __init__(self, message: str, *, source: str = "", row_number: int | None = None):
        super().__init__(message)
        self.source = source
        self.row_number = row_number


class UnsupportedFormat(PhotoJudgeError):
    """A file can neither be displayed directly nor converted."""


class MissingJudgeData(PhotoJudgeError):
    """Averaging was requested without all three judge score sets."""

    def __init__(self, missing_slots: list[int]):
        slots = ", ".join(str(i + 1) for i in missing_slots)
        super().__init__(f"Score sets from all 3 judges are required; missing judge(s): {slots}")
        self.missing_slots = missing_slots


class LayoutFailure(PhotoJudgeError):
    """Rendering the paginated report failed; no partial document is returned."""

    def __init__(self, message: str, *, record_id: str | None = None, record_name: str | None = None):
        super().__init__(message)
        self.record_id = record_id
        self.record_name = record_name


class SerializationFailure(PhotoJudgeError):
    """The tabular codec could not produce a buffer."""
