from .stability_detector import StabilityDetector

__all__ = ["StabilityDetector"]
