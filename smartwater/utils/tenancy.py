"""Organization scoping for tenant-owned records"""
from flask import abort, request
from smartwater import db

# Walked in order until a record carrying organization_id is reached
PARENT_ATTRS = ('client', 'project', 'maintenance', 'email')


def current_org_id():
    return request.current_user.organization_id


def owner_org_id(obj):
    while obj is not None:
        org_id = getattr(obj, 'organization_id', None)
        if org_id is not None:
            return org_id
        obj = next((getattr(obj, attr) for attr in PARENT_ATTRS if getattr(obj, attr, None) is not None), None)
    return None


def get_owned_or_404(model, ident, label=None):
    """Load a record and make sure it belongs to the caller's organization"""
    label = label or model.__name__
    obj = db.get_or_404(model, ident, description=f'{label} not found')
    user = request.current_user
    if user.role != 'system_admin' and owner_org_id(obj) != user.organization_id:
        abort(403, description=f'Forbidden - {label} belongs to another organization')
    return obj


def scoped(query, model):
    """Restrict a query on a model with its own organization_id column"""
    if request.current_user.role == 'system_admin':
        return query
    return query.filter(model.organization_id == current_org_id())
