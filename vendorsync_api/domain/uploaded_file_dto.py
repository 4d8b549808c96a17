class UploadedFileDTO:
    def __init__(self, file_name: str, content_type: str | None, file_content: bytes):
        self.file_name = file_name or "invoice"
        self.content_type = content_type
        self.file_content = file_content

    @property
    def size(self) -> int:
        return len(self.file_content or b"")
