from typing import Optional

from pydantic import BaseModel, Field


class HobbyRead(BaseModel):
    id: int = Field(..., description="ID хобби")
    name: str = Field(..., max_length=50, description="Название")
    category: str = Field(..., description="Категория каталога")
    icon: str = Field(..., description="Иконка (эмодзи)")
    description: Optional[str] = Field(None, max_length=200, description="Описание")
    order: int = Field(..., description="Порядок в каталоге")

    class Config:
        from_attributes = True
