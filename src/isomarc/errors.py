class MarcError(Exception):
    pass


class MalformedLeaderError(MarcError):
    pass


class IllegalTagError(MarcError):
    def __init__(self, tag, reason: str = "invalid tag") -> None:
        super().__init__(f"{reason}: {tag!r}")
        self.tag = tag


class IllegalDataElementError(MarcError):
    pass


class IllegalAddError(MarcError):
    pass


class FieldTooLongError(MarcError):
    pass


class OffsetOverflowError(MarcError):
    pass


class IncompleteRecordError(MarcError):
    pass


class EncodingError(MarcError):
    pass


class MarcReaderError(MarcError):
    """A diagnostic raised by the decoder and handed to an error handler.

    Never raised by the reader itself; it travels through ``ErrorHandler``
    so that parsing can go on.
    """

    def __init__(self, message: str, position: int, control_number: str | None = None, file_name: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.position = position
        self.control_number = control_number
        self.file_name = file_name

    def __str__(self) -> str:
        res = f"{self.message} (position {self.position}"
        if self.control_number is not None:
            res += f", control number {self.control_number}"
        if self.file_name is not None:
            res += f", file {self.file_name}"
        return res + ")"
