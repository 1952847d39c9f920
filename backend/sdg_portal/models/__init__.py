from sdg_portal.models.form import Form, FormCategory, FormField, FormSubmission

__all__ = [
    "Form", "FormCategory", "FormField", "FormSubmission",
]
