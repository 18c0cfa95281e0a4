from pydantic import BaseModel, ConfigDict

class LabelCreate(BaseModel):
    """Créer / renommer un label"""
    title: str

class LabelResponse(BaseModel):
    """Label retourné"""
    id: int
    title: str
    order: int

    model_config = ConfigDict(from_attributes=True)
