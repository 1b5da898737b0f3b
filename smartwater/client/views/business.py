"""Business tables (expenses, inventory, purchasing, compliance) and their dashboard"""
from smartwater.client import resources
from smartwater.client.forms import Form
from smartwater.client.views.base import EntityView
from smartwater.schemas.business import (
    ExpenseSchema, VendorSchema, PurchaseOrderSchema, InventoryItemSchema,
    LicenseSchema, InsurancePolicySchema, FinancialReportSchema
)

SCHEMAS = {
    'expenses': ExpenseSchema,
    'inventory': InventoryItemSchema,
    'vendors': VendorSchema,
    'purchase-orders': PurchaseOrderSchema,
    'licenses': LicenseSchema,
    'insurance': InsurancePolicySchema,
    'reports': FinancialReportSchema,
}

TIME_RANGES = ('day', 'week', 'month', 'year')


def dashboard_key(time_range):
    return ('/api/business', 'dashboard', time_range)


class BusinessTableView(EntityView):

    def __init__(self, api, cache, resource, time_range='month', **kwargs):
        super().__init__(api, cache, **kwargs)
        self.resource = resource
        self.schema = SCHEMAS[resource]
        self.repository = resources.business(api, cache, resource)
        self.time_range = time_range
        self.watch(self.repository.list_key)
        self._dashboard_unsubscribe = self.watch(dashboard_key(time_range), self._dashboard_fetch(time_range))

    def _dashboard_fetch(self, time_range):
        return lambda: self.api.get('/api/business/dashboard', params={'timeRange': time_range})

    @property
    def rows(self):
        return self.data(self.repository.list_key, [])

    @property
    def dashboard(self):
        return self.data(dashboard_key(self.time_range))

    @property
    def metrics(self):
        return (self.dashboard or {}).get('metrics', {})

    def set_time_range(self, time_range):
        if time_range not in TIME_RANGES:
            raise ValueError(f"Unknown time range: {time_range}")
        if time_range == self.time_range:
            return
        self._dashboard_unsubscribe()
        self._unsubscribers.remove(self._dashboard_unsubscribe)
        self.time_range = time_range
        self._dashboard_unsubscribe = self.watch(dashboard_key(time_range), self._dashboard_fetch(time_range))

    def create(self, values):
        form = Form(self.schema, values)
        if not form.validate():
            self.form_errors(form)
            return None
        return self.run(self.repository.create_mutation(), form.payload(),
                        success='Record created', failure='Could not create record')

    def edit(self, record_id, values):
        record = next((row for row in self.rows if row['id'] == record_id), None) or self.repository.fetch(record_id)
        form = Form.from_record(self.schema, record)
        form.update(values)
        if not form.validate():
            self.form_errors(form)
            return None
        changes = form.changed_fields()
        if not changes:
            return None
        return self.run(self.repository.update_mutation(), (record_id, changes),
                        success='Record updated', failure='Could not update record')

    def delete(self, record_id):
        return self.run(self.repository.delete_mutation(), record_id,
                        success='Record deleted', failure='Could not delete record')
