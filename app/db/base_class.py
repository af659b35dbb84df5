# Fichier: pharmia/backend/app/db/base_class.py
from sqlalchemy.orm import DeclarativeBase

class Base(DeclarativeBase):
    """
    Classe de base pour tous les modèles SQLAlchemy (utilisateurs,
    historiques d'apprentissage, catalogue de mémofiches).
    """
