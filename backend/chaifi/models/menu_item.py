"""
Menu Item Model
"""
from sqlalchemy import Column, String, Boolean, Text

from chaifi.database import Base


class MenuItemRecord(Base):
    __tablename__ = "menu_items"

    id = Column(String(36), primary_key=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=False, default="")
    price = Column(String, nullable=False)  # "25.00"
    category = Column(String, nullable=False, index=True)
    image = Column(Text, nullable=False, default="")
    available = Column(Boolean, nullable=False, default=True)

    def __repr__(self):
        return f"<MenuItemRecord {self.name} {self.price}>"
