from flask import Blueprint, request, jsonify
from smartwater import db
from smartwater.models.business import (
    Vendor, Expense, PurchaseOrder, InventoryItem, License, InsurancePolicy, FinancialReport,
    OUTSTANDING_ORDER_STATUSES
)
from smartwater.schemas.base import validate_create, validate_update
from smartwater.schemas.business import (
    ExpenseSchema, VendorSchema, PurchaseOrderSchema, InventoryItemSchema,
    LicenseSchema, InsurancePolicySchema, FinancialReportSchema
)
from smartwater.utils.auth import require_auth, require_role, STAFF_ROLES
from smartwater.utils.tenancy import get_owned_or_404, scoped, current_org_id
from datetime import date, timedelta

bp = Blueprint('business', __name__)

TIME_RANGES = ('day', 'week', 'month', 'year')


def range_start(time_range, today=None):
    """First day covered by a dashboard time range (month when unrecognised)"""
    today = today or date.today()
    if time_range == 'day':
        return today
    if time_range == 'week':
        return today - timedelta(days=7)
    if time_range == 'year':
        return today.replace(month=1, day=1)
    return today.replace(day=1)


@bp.route('/dashboard', methods=['GET'])
@require_auth
@require_role(*STAFF_ROLES)
def get_dashboard():
    """
    Business dashboard metrics
    ---
    tags:
      - Business
    security:
      - Bearer: []
    parameters:
      - name: timeRange
        in: query
        schema:
          type: string
          enum: [day, week, month, year]
          default: month
    responses:
      200:
        description: Metrics plus the most recent expenses and purchase orders
    """
    time_range = request.args.get('timeRange', 'month')
    if time_range not in TIME_RANGES:
        time_range = 'month'
    start = range_start(time_range)

    expenses = scoped(Expense.query, Expense).filter(Expense.date >= start) \
        .order_by(Expense.date.desc(), Expense.id.desc()).all()
    total_expenses = sum(float(expense.amount or 0) for expense in expenses)

    inventory = scoped(InventoryItem.query, InventoryItem).filter(InventoryItem.is_active.is_(True)).all()
    low_stock = [item for item in inventory if (item.minimum_stock or 0) > 0 and item.is_low_stock]
    inventory_value = sum(float(item.unit_cost or 0) * (item.quantity or 0) for item in inventory)

    orders = scoped(PurchaseOrder.query, PurchaseOrder).filter(PurchaseOrder.order_date >= start) \
        .order_by(PurchaseOrder.order_date.desc(), PurchaseOrder.id.desc()).all()
    outstanding = [order for order in orders if order.status in OUTSTANDING_ORDER_STATUSES]

    # Revenue arrives with invoicing; until then profit is negative expenses
    total_revenue = 0.0
    profit = total_revenue - total_expenses
    profit_margin = round(profit / total_revenue * 100, 1) if total_revenue > 0 else 0

    return jsonify({
        'metrics': {
            'totalRevenue': total_revenue,
            'expenses': round(total_expenses, 2),
            'profit': round(profit, 2),
            'profitMargin': profit_margin,
            'inventoryValue': round(inventory_value, 2),
            'lowStockItems': len(low_stock),
            'outstandingInvoices': len(outstanding),
        },
        'recentExpenses': [expense.to_dict() for expense in expenses[:5]],
        'lowStockItems': [item.to_dict() for item in low_stock],
        'recentPurchaseOrders': [order.to_dict() for order in orders[:5]],
        'timeRange': time_range,
    }), 200


def register_resource(path, model, schema, label, order_by):
    """Wire list/create/get/update/delete routes for one business table"""
    endpoint = path.replace('-', '_')
    vendor_checked = 'vendor_id' in schema.model_fields

    @require_auth
    @require_role(*STAFF_ROLES)
    def list_records():
        records = scoped(model.query, model).order_by(*order_by).all()
        return jsonify([record.to_dict() for record in records]), 200

    @require_auth
    @require_role(*STAFF_ROLES)
    def create_record():
        data = validate_create(schema, request.get_json(silent=True))
        if vendor_checked and data.get('vendor_id'):
            get_owned_or_404(Vendor, data['vendor_id'], 'Vendor')
        record = model(organization_id=current_org_id(), **data)
        db.session.add(record)
        db.session.commit()
        return jsonify(record.to_dict()), 201

    @require_auth
    @require_role(*STAFF_ROLES)
    def get_record(record_id):
        return jsonify(get_owned_or_404(model, record_id, label).to_dict()), 200

    @require_auth
    @require_role(*STAFF_ROLES)
    def update_record(record_id):
        record = get_owned_or_404(model, record_id, label)
        changes = validate_update(schema, record.to_dict(), request.get_json(silent=True))
        if vendor_checked and changes.get('vendor_id'):
            get_owned_or_404(Vendor, changes['vendor_id'], 'Vendor')
        for field, value in changes.items():
            setattr(record, field, value)
        db.session.commit()
        return jsonify(record.to_dict()), 200

    @require_auth
    @require_role(*STAFF_ROLES)
    def delete_record(record_id):
        record = get_owned_or_404(model, record_id, label)
        db.session.delete(record)
        db.session.commit()
        return jsonify({'message': f'{label} deleted successfully'}), 200

    bp.add_url_rule(f'/{path}', f'list_{endpoint}', list_records, methods=['GET'])
    bp.add_url_rule(f'/{path}', f'create_{endpoint}', create_record, methods=['POST'])
    bp.add_url_rule(f'/{path}/<int:record_id>', f'get_{endpoint}', get_record, methods=['GET'])
    bp.add_url_rule(f'/{path}/<int:record_id>', f'update_{endpoint}', update_record, methods=['PATCH', 'PUT'])
    bp.add_url_rule(f'/{path}/<int:record_id>', f'delete_{endpoint}', delete_record, methods=['DELETE'])


register_resource('expenses', Expense, ExpenseSchema, 'Expense', (Expense.date.desc(), Expense.id.desc()))
register_resource('inventory', InventoryItem, InventoryItemSchema, 'Inventory item', (InventoryItem.name,))
register_resource('vendors', Vendor, VendorSchema, 'Vendor', (Vendor.name,))
register_resource('purchase-orders', PurchaseOrder, PurchaseOrderSchema, 'Purchase order',
                  (PurchaseOrder.order_date.desc(), PurchaseOrder.id.desc()))
register_resource('licenses', License, LicenseSchema, 'License', (License.expiry_date, License.id))
register_resource('insurance', InsurancePolicy, InsurancePolicySchema, 'Insurance policy',
                  (InsurancePolicy.end_date, InsurancePolicy.id))
register_resource('reports', FinancialReport, FinancialReportSchema, 'Financial report',
                  (FinancialReport.period_end.desc(), FinancialReport.id.desc()))
