"""Service modules"""
from .simulator import Simulator

__all__ = ["Simulator"]
