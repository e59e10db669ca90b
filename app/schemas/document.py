from pydantic import BaseModel, ConfigDict, Field


class DocumentItem(BaseModel):
    """A document as listed in the sidebar: storage filename plus display name."""
    id: str
    name: str


class DocumentListResponse(BaseModel):
    documents: list[DocumentItem]


class UploadResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    filename: str
    original_name: str = Field(serialization_alias="originalName")


class DocumentRequest(BaseModel):
    """Body for endpoints that act on one document."""
    filename: str = Field(min_length=1)


class SuccessResponse(BaseModel):
    success: bool = True


class SupportedFormatsResponse(BaseModel):
    extensions: list[str]
    max_file_size_mb: int
