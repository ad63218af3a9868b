from rest_framework import serializers


class BaseModelSerializer(serializers.ModelSerializer):
    """
    Base serializer for read models.

    Writes never go through ModelSerializer.save(); views validate input with
    plain serializers and hand the data to a service.
    """

    def create(self, validated_data):
        raise NotImplementedError("Use the owning service to create records.")

    def update(self, instance, validated_data):
        raise NotImplementedError("Use the owning service to update records.")


class FieldsetMixin:
    """
    Mixin that enables dynamic field control via context:
    - Fieldsets (view modes: list, detail)
    - Dynamic field filtering (?fields=id,name)

    Usage:
        class OrderSerializer(FieldsetMixin, BaseModelSerializer):
            class Meta:
                model = Order
                fields = '__all__'
                fieldsets = {
                    'list': ['id', 'order_number', 'status', 'total_cents'],
                }
                required_fields = {'id'}
    """

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._apply_fieldset_filtering()
        self._apply_dynamic_field_filtering()

    def _required_fields(self):
        return set(getattr(self.Meta, "required_fields", {"id"}))

    def _keep_only(self, allowed):
        allowed = set(allowed) | self._required_fields()
        for field_name in set(self.fields.keys()) - allowed:
            self.fields.pop(field_name)

    def _apply_fieldset_filtering(self):
        view_mode = self.context.get("view_mode")
        fieldsets = getattr(self.Meta, "fieldsets", {})
        if view_mode and view_mode in fieldsets:
            fieldset_value = fieldsets[view_mode]
            if fieldset_value == "__all__":
                return
            self._keep_only(fieldset_value)

    def _apply_dynamic_field_filtering(self):
        # Required fields survive ?fields= so payloads are never orphaned.
        requested = self.context.get("requested_fields")
        if requested:
            self._keep_only(requested)


class CentsField(serializers.IntegerField):
    """Non-negative amount in currency minor units."""

    def __init__(self, **kwargs):
        kwargs.setdefault("min_value", 0)
        super().__init__(**kwargs)
