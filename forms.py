# forms.py
import math

from flask_wtf import FlaskForm
from wtforms import StringField, FloatField, IntegerField, SubmitField
from wtforms.validators import DataRequired, Length, Optional, Regexp, ValidationError
from models import db, EvaluationTitle

# "#1a2b3c", "#abc" or a CSS colour keyword such as "gold"
COLOR_PATTERN = r"^(#[0-9a-fA-F]{3}|#[0-9a-fA-F]{6}|[a-zA-Z]+)$"


class FormattingRuleForm(FlaskForm):
    min_score = FloatField("Minimum score")
    max_score = FloatField("Maximum score")
    color = StringField("Colour", validators=[
        DataRequired(), Length(max=32), Regexp(COLOR_PATTERN, message="Not a valid colour."),
    ])
    evaluation_title_id = IntegerField("Evaluation title (blank = all)", validators=[Optional()])
    submit = SubmitField("Save rule")

    # FloatField leaves data as None when the value is missing or not a number,
    # but lets "nan" and "inf" through; DataRequired would also reject a legitimate 0.
    def validate_min_score(self, field):
        if field.data is None or not math.isfinite(field.data):
            raise ValidationError("Minimum score must be a number.")

    def validate_max_score(self, field):
        if field.data is None or not math.isfinite(field.data):
            raise ValidationError("Maximum score must be a number.")
        if self.min_score.data is not None and self.min_score.data > field.data:
            raise ValidationError("Minimum score must not be greater than maximum score.")

    def validate_evaluation_title_id(self, field):
        if field.data is not None and db.session.get(EvaluationTitle, field.data) is None:
            raise ValidationError("Unknown evaluation title.")
