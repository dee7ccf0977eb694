"""Error taxonomy shared by the parser, index, job registry and result store."""


class PaperGraphError(Exception):
    """Base class for all pipeline errors."""

    kind = "PaperGraphError"


class MalformedRecord(PaperGraphError):
    """An input line could not be parsed into a paper record."""

    kind = "MalformedRecord"

    def __init__(self, line, reason):
        self.line = line
        self.reason = reason
        super().__init__(f"line {line}: {reason}")


class MissingEmbedding(PaperGraphError):
    kind = "MissingEmbedding"


class IndexUnavailable(PaperGraphError):
    kind = "IndexUnavailable"


class DimensionMismatch(PaperGraphError):
    kind = "DimensionMismatch"


class ResultsUnavailable(PaperGraphError):
    kind = "ResultsUnavailable"


class OutOfRange(PaperGraphError):
    kind = "OutOfRange"

    def __init__(self, start, size):
        self.start = start
        self.size = size
        super().__init__(f"start index {start} out of range for {size} entries")


class JobNotFound(PaperGraphError):
    kind = "JobNotFound"

    def __init__(self, handle):
        self.handle = handle
        super().__init__(f"no such job: {handle}")


class JobNotReady(PaperGraphError):
    kind = "JobNotReady"

    def __init__(self, handle):
        self.handle = handle
        super().__init__(f"job {handle} is still running")
