from marshmallow import Schema, fields, post_load, validate, validates, validates_schema, ValidationError


class ItemIdField(fields.Field):
    """External item id: a non-empty string or a non-zero integer"""

    def _deserialize(self, value, attr, data, **kwargs):
        if isinstance(value, bool) or not isinstance(value, (str, int)):
            raise ValidationError("Must be a string or an integer.")
        if value == "" or value == 0:
            raise ValidationError("Identifier cannot be empty.")
        return value


class AddCartItemSchema(Schema):
    id = ItemIdField(required=True)
    name = fields.Str(required=True, validate=validate.Length(min=1))
    qty = fields.Float(load_default=1)
    price = fields.Float(required=True)
    options = fields.Dict(keys=fields.Str(), load_default=dict)
    tax_rate = fields.Float(data_key="taxRate", load_default=None, allow_none=True)

    @post_load
    def to_record(self, data, **kwargs):
        """Shape the payload as a cart record ({"id", "name", ..., "taxRate"})"""
        tax_rate = data.pop("tax_rate", None)
        if tax_rate is not None:
            data["taxRate"] = tax_rate
        return data


class UpdateCartItemSchema(Schema):
    id = ItemIdField()
    name = fields.Str(validate=validate.Length(min=1))
    qty = fields.Float()
    price = fields.Float()
    options = fields.Dict(keys=fields.Str())
    tax_rate = fields.Float(data_key="taxRate")

    @validates_schema
    def validate_not_empty(self, data, **kwargs):
        if not data:
            raise ValidationError("At least one attribute must be supplied.")

    @post_load
    def to_patch(self, data, **kwargs):
        if "tax_rate" in data:
            data["taxRate"] = data.pop("tax_rate")
        return data


class SetTaxSchema(Schema):
    tax_rate = fields.Float(required=True, data_key="taxRate", validate=validate.Range(min=0))


class AddCostSchema(Schema):
    name = fields.Str(required=True, validate=validate.Length(min=1, max=64))
    price = fields.Float(required=True)

    @validates("name")
    def validate_name(self, value, **kwargs):
        if not value.strip():
            raise ValidationError("Cost name cannot be blank.")


class MergeCartSchema(Schema):
    keep_tax = fields.Bool(load_default=False)
    dispatch = fields.Bool(load_default=True)
    instance = fields.Str(load_default=None, allow_none=True)
