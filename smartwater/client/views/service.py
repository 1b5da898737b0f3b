"""Maintenance schedule, service reports and repairs"""
from datetime import date, timedelta

from smartwater.client import resources
from smartwater.client.forms import Form
from smartwater.client.mutations import Mutation
from smartwater.client.views.base import EntityView
from smartwater.schemas.service import MaintenanceSchema, RepairSchema, ServiceReportSchema


class MaintenanceView(EntityView):

    def __init__(self, api, cache, **kwargs):
        super().__init__(api, cache, **kwargs)
        self.repository = resources.maintenances(api, cache)
        self.status_filter = 'all'
        self.watch(self.repository.list_key)

    @property
    def maintenances(self):
        maintenances = self.data(self.repository.list_key, [])
        if self.status_filter != 'all':
            maintenances = [item for item in maintenances if item.get('status') == self.status_filter]
        return maintenances

    def upcoming(self, days=7, today=None):
        today = today or date.today()
        until = today + timedelta(days=days)
        return [
            item for item in self.maintenances
            if not item.get('completed') and today <= date.fromisoformat(item['scheduledDate']) <= until
        ]

    def schedule(self, values):
        form = Form(MaintenanceSchema, values)
        if not form.validate():
            self.form_errors(form)
            return None
        return self.run(self.repository.create_mutation(), form.payload(),
                        success='Maintenance scheduled', failure='Could not schedule maintenance')

    def update(self, maintenance_id, changes):
        return self.run(self.repository.update_mutation(), (maintenance_id, changes),
                        success='Maintenance updated', failure='Could not update maintenance')

    def set_status(self, maintenance_id, status):
        return self.update(maintenance_id, {'status': status})

    def assign_technician(self, maintenance_id, technician_id):
        mutation = Mutation(
            self.cache,
            lambda body: self.api.patch(f'/api/maintenances/{maintenance_id}/technician', json=body),
            invalidates=self.repository.affected(maintenance_id),
        )
        return self.run(mutation, {'technicianId': technician_id},
                        success='Technician assigned' if technician_id else 'Technician removed',
                        failure='Could not assign technician')

    def delete(self, maintenance_id):
        return self.run(self.repository.delete_mutation(), maintenance_id,
                        success='Maintenance deleted', failure='Could not delete maintenance')


class ServiceReportView(EntityView):
    """
    Report form for one visit.

    Water readings are separate numeric fields, validated against plausible
    ranges before anything is sent.
    """

    def __init__(self, api, cache, maintenance_id, **kwargs):
        super().__init__(api, cache, **kwargs)
        self.maintenance_id = maintenance_id
        self.repository = resources.maintenances(api, cache)
        self.key = self.repository.item_key(maintenance_id)
        self.readings_key = ('/api/maintenances', maintenance_id, 'water-readings')
        self.form = Form(ServiceReportSchema)
        self.watch(self.key)
        self.watch(self.readings_key)

    @property
    def maintenance(self):
        return self.data(self.key)

    @property
    def reports(self):
        return self.data(self.readings_key, [])

    @property
    def latest_readings(self):
        reports = self.reports
        return reports[0]['waterReadings'] if reports else {}

    def submit(self, values=None):
        if values:
            self.form.update(values)
        if not self.form.validate():
            self.form_errors(self.form, 'Check the report')
            return None
        mutation = Mutation(
            self.cache,
            lambda body: self.api.post(f'/api/maintenances/{self.maintenance_id}/service-report', json=body),
            invalidates=[*self.repository.affected(self.maintenance_id), self.readings_key],
        )
        result = self.run(mutation, self.form.payload(),
                          success='Service report saved', failure='Could not save report')
        if result is not None:
            self.form.reset()
        return result


class RepairsView(EntityView):

    def __init__(self, api, cache, **kwargs):
        super().__init__(api, cache, **kwargs)
        self.repository = resources.repairs(api, cache)
        self.status_filter = 'all'
        self.watch(self.repository.list_key)

    @property
    def repairs(self):
        repairs = self.data(self.repository.list_key, [])
        if self.status_filter != 'all':
            repairs = [repair for repair in repairs if repair.get('status') == self.status_filter]
        return repairs

    @property
    def open_repairs(self):
        return [repair for repair in self.data(self.repository.list_key, []) if repair.get('status') != 'completed']

    def report(self, values):
        form = Form(RepairSchema, values)
        if not form.validate():
            self.form_errors(form)
            return None
        return self.run(self.repository.create_mutation(), form.payload(),
                        success='Repair request submitted', failure='Could not submit repair request')

    def update(self, repair_id, changes):
        return self.run(self.repository.update_mutation(), (repair_id, changes),
                        success='Repair updated', failure='Could not update repair')

    def assign_technician(self, repair_id, technician_id):
        return self.update(repair_id, {'technicianId': technician_id})

    def complete(self, repair_id):
        return self.update(repair_id, {'status': 'completed'})

    def delete(self, repair_id):
        return self.run(self.repository.delete_mutation(), repair_id,
                        success='Repair deleted', failure='Could not delete repair')
