from contact_api.client.form import ContactClient, ContactForm, FormStatus

__all__ = ["ContactClient", "ContactForm", "FormStatus"]
