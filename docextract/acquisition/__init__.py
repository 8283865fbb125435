"""
Text Acquisition Module.

Obtains raw text for a document, deciding per document whether the
PDF text layer suffices or OCR is required.

Author: ML Engineering Team
"""

from .acquirer import AcquiredText, AcquisitionListener, OCRDecision, TextAcquirer

__all__ = ['AcquiredText', 'AcquisitionListener', 'OCRDecision', 'TextAcquirer']
