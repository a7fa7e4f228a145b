from sqlalchemy import Column, String, Integer, ForeignKey
from sqlalchemy.orm import relationship
from app.models.base import BaseModel
from app.models.types import JSONList

class Location(BaseModel):
    """
    Reference table for the location hierarchy (country > state/region > city).
    Loaded once at startup into an in-memory index, see services/locations.py.
    """
    __tablename__ = "locations"

    name = Column(String(100), unique=True, nullable=False, index=True)  # lower-case
    type = Column(String(20), nullable=False)  # country | state | region | city
    parent_id = Column(Integer, ForeignKey("locations.id"), nullable=True, index=True)
    aliases = Column(JSONList, default=list)

    parent = relationship("Location", remote_side="Location.id", back_populates="children")
    children = relationship("Location", back_populates="parent")
