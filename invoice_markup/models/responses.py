
from pydantic import BaseModel, Field

# Field names follow the review UI's JSON contract (camelCase on the wire).
UI_MODEL_CONFIG = {"populate_by_name": True}


class UIItem(BaseModel):
    product: str
    quantity: float = 1.0
    unit: str = "each"
    cost_ex_gst: float = Field(0.0, alias="costExGST")
    category: str = "Groceries"
    markup: float = 1.65  # multiplier
    retail_price: float = Field(0.0, alias="retailPrice")  # per unit, inc GST

    model_config = UI_MODEL_CONFIG


class ReviewItem(BaseModel):
    product: str
    product_code: str = Field("", alias="productCode")
    notes: list[str] = Field(default_factory=list)

    model_config = UI_MODEL_CONFIG


class Summary(BaseModel):
    total_items: int = Field(0, alias="totalItems")
    total_cost: float = Field(0.0, alias="totalCost")
    total_retail: float = Field(0.0, alias="totalRetail")
    items_needing_review: int = Field(0, alias="itemsNeedingReview")

    model_config = UI_MODEL_CONFIG


class ProcessInvoiceResponse(BaseModel):
    supplier: str
    items: list[UIItem]
    processing_notes: list[str] = Field(default_factory=list, alias="processingNotes")
    summary: Summary = Field(default_factory=Summary)
    extraction_method: str | None = Field(None, alias="extractionMethod")
    review_items: list[ReviewItem] = Field(default_factory=list, alias="reviewItems")

    model_config = UI_MODEL_CONFIG


class ErrorResponse(BaseModel):
    error: str
    details: str | None = None
    timestamp: str | None = None
    debug: dict | None = None
