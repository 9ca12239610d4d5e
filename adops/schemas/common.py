from pydantic import BaseModel, Field, model_validator


class BrandAclInput(BaseModel):
    """Brand ACL as sent by clients: either all brands or an explicit list."""

    allow_all_brands: bool = False
    selected_brands: list[int] = Field(default_factory=list)

    @model_validator(mode="after")
    def _dedupe(self):
        self.selected_brands = sorted(set(self.selected_brands))
        return self
