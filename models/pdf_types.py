"""
Pydantic models for the PDF Image Extraction API
Result entries for extracted images and the HTTP request/response shapes
"""

from pydantic import BaseModel, Field
from typing import List, Optional


class ExtractedImage(BaseModel):
    """One image file written by an extraction run"""
    fileName: str = Field(..., description="Path of the written file")
    name: str = Field(..., description="Resource name of the image (e.g. 'Im1'), 'inline' for inline images")
    pageNumber: int = Field(..., description="1-based page where the image was first painted")
    objectNumber: Optional[int] = Field(None, description="Object number, None for inline images")
    generationNumber: Optional[int] = None
    width: int
    height: int
    suffix: str = Field(..., description="File suffix: png, jpg, jp2 or tiff")
    dpi: Optional[int] = Field(None, description="Resolution tag written to the file, if any")
    passthrough: bool = Field(False, description="True when the compressed stream was copied as-is")


class ExtractionResult(BaseModel):
    """Outcome of an extraction run"""
    images: List[ExtractedImage] = Field(default_factory=list)
    totalPages: int = 0
    pagesProcessed: int = 0
    failedImages: int = Field(0, description="Images skipped because they could not be decoded, encoded or written")


class ErrorResponse(BaseModel):
    """Error response model"""
    error: str
    detail: Optional[str] = None


class PdfImageExtractionOptions(BaseModel):
    """Configuration for the extract-pdf-images endpoint"""
    direct_jpeg: bool = Field(False, description="Copy JPEG streams as-is regardless of color space")
    no_color_convert: bool = Field(False, description="Keep the image's own color space")
    include_density: bool = Field(False, description="Re-encode every image to write its DPI")
    include_image_data: bool = Field(False, description="If true, embed base64 image data directly in the response")
    start_page: int = Field(1, ge=1)
    end_page: Optional[int] = Field(None, ge=1)


class ExtractedImageData(ExtractedImage):
    """Extracted image as returned over HTTP"""
    mimeType: str = "image/unknown"
    data: Optional[str] = Field(None, description="Base64 data URI of the file when requested")


class ExtractionResponse(BaseModel):
    """Response model for the extract-pdf-images endpoint"""
    images: List[ExtractedImageData]
    totalPages: int
    pagesProcessed: int
    failedImages: int = 0
