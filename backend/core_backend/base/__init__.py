from .serializers import BaseModelSerializer, CentsField, FieldsetMixin
from .viewsets import BaseViewSet

__all__ = [
    "BaseModelSerializer",
    "BaseViewSet",
    "CentsField",
    "FieldsetMixin",
]
