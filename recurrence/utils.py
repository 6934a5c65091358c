from typing import TypeVar

from django.core.exceptions import ObjectDoesNotExist
from django.db import models


AnyModel = TypeVar("AnyModel", bound=models.Model)

# Bookkeeping fields a clone must get fresh values for.
NON_CLONED_FIELDS = frozenset({"id", "created", "modified"})


def clone_model_instance(instance: AnyModel, save=True, **kwargs) -> AnyModel:
    """
    Copy the concrete and forward relation fields of ``instance`` into a new
    instance, with ``kwargs`` replacing individual field values.
    """
    new_instance = instance.__class__()
    for field in instance._meta.get_fields(include_hidden=False):
        if field.is_relation and (field.many_to_many or field.one_to_many):
            continue
        if field.name in NON_CLONED_FIELDS:
            continue
        try:
            original_value = getattr(instance, field.name)
            setattr(new_instance, field.name, kwargs.get(field.name, original_value))
        except ObjectDoesNotExist:
            pass

    new_instance.pk = None
    if save:
        new_instance.save()
    return new_instance
