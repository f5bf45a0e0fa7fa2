from marshmallow import EXCLUDE, Schema, fields, pre_load, validate


class ReadingListAddSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    bookId = fields.String(required=True, validate=validate.Length(min=1, max=64))

    @pre_load
    def strip_work_prefix(self, data, **kwargs):
        # the frontend sometimes sends "/works/OL123W"
        if isinstance(data, dict) and isinstance(data.get("bookId"), str):
            data = dict(data)
            data["bookId"] = data["bookId"].strip().rsplit("/", 1)[-1]
        return data


class ReadingListEntryOutSchema(Schema):
    book_id = fields.String()
