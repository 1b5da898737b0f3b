from datetime import date, datetime, timezone
from unittest.mock import patch, MagicMock

import pytest

from smartwater.client.views import (
    BusinessTableView, CommunicationsView, MaintenanceView, RepairsView, ServiceReportView
)
from smartwater.client.views.business import dashboard_key
from tests.conftest import make_user


@pytest.fixture
def technician(org):
    return make_user(org, username='tech', role='technician', name='Tina Tech')


def visit(pool_client, **values):
    body = {'clientId': pool_client.id, 'scheduledDate': '2024-06-03', 'type': 'cleaning'}
    body.update(values)
    return body


# Maintenance

def test_schedule_refreshes_the_list(api, cache, session, toaster, pool_client):
    view = MaintenanceView(api, cache, toaster=toaster)
    cache.wait_until_idle()
    assert view.maintenances == []

    created = view.schedule(visit(pool_client, scheduledTime='09:30'))
    cache.wait_until_idle()

    assert created['scheduledTime'] == '09:30:00'
    assert toaster.last.title == 'Maintenance scheduled'
    assert [item['id'] for item in view.maintenances] == [created['id']]
    assert session.requests_for('POST', '/api/maintenances')[0][2]['scheduledDate'] == '2024-06-03'
    view.close()


def test_invalid_schedule_is_not_sent(api, cache, session, toaster, pool_client):
    view = MaintenanceView(api, cache, toaster=toaster)
    assert view.schedule({'clientId': pool_client.id, 'scheduledDate': 'soon'}) is None
    assert session.requests_for('POST') == []
    assert toaster.last.variant == 'destructive'
    assert 'scheduledDate' in toaster.last.description
    view.close()


def test_upcoming_and_status_filter(api, cache, pool_client):
    view = MaintenanceView(api, cache)
    view.schedule(visit(pool_client, scheduledDate='2024-06-03'))
    view.schedule(visit(pool_client, scheduledDate='2024-06-20'))
    done = view.schedule(visit(pool_client, scheduledDate='2024-06-04'))
    view.set_status(done['id'], 'completed')
    cache.wait_until_idle()

    assert [item['scheduledDate'] for item in view.upcoming(today=date(2024, 6, 1))] == ['2024-06-03']
    view.status_filter = 'completed'
    assert [item['id'] for item in view.maintenances] == [done['id']]
    view.close()


def test_assign_technician(api, cache, session, toaster, pool_client, technician):
    view = MaintenanceView(api, cache, toaster=toaster)
    created = view.schedule(visit(pool_client))
    view.assign_technician(created['id'], technician.id)
    cache.wait_until_idle()

    assert session.requests_for('PATCH')[-1] == (
        'PATCH', f"/api/maintenances/{created['id']}/technician", {'technicianId': technician.id})
    assert toaster.last.title == 'Technician assigned'
    assert view.maintenances[0]['technician']['name'] == 'Tina Tech'
    view.close()


# Service reports

def test_out_of_range_reading_never_reaches_the_server(api, cache, session, toaster, pool_client):
    created = MaintenanceView(api, cache).schedule(visit(pool_client))
    view = ServiceReportView(api, cache, created['id'], toaster=toaster)
    cache.wait_until_idle()

    assert view.submit({'ph': '15', 'chlorine': '2'}) is None
    assert session.requests_for('POST', f"/api/maintenances/{created['id']}/service-report") == []
    assert toaster.last.title == 'Check the report'
    assert 'ph' in view.form.errors
    view.close()


def test_service_report_updates_visit_and_readings(api, cache, toaster, pool_client):
    created = MaintenanceView(api, cache).schedule(visit(pool_client))
    view = ServiceReportView(api, cache, created['id'], toaster=toaster)
    cache.wait_until_idle()
    assert view.latest_readings == {}

    result = view.submit({'ph': '7.4', 'chlorine': '2.5', 'tasksCompleted': 'Skimmed\nBrushed'})
    cache.wait_until_idle()

    assert result['report']['waterReadings']['ph'] == 7.4
    assert toaster.last.title == 'Service report saved'
    assert view.maintenance['status'] == 'completed'
    assert view.latest_readings['chlorine'] == 2.5
    assert view.reports[0]['tasksCompleted'] == ['Skimmed', 'Brushed']
    assert view.form.values == {}
    view.close()


# Repairs

def test_repair_lifecycle(api, cache, toaster, pool_client, technician):
    view = RepairsView(api, cache, toaster=toaster)
    repair = view.report({'clientId': pool_client.id, 'issueType': 'Heater', 'description': 'No heat'})
    assert toaster.last.title == 'Repair request submitted'

    view.assign_technician(repair['id'], technician.id)
    cache.wait_until_idle()
    assert view.repairs[0]['status'] == 'assigned'

    view.complete(repair['id'])
    cache.wait_until_idle()
    assert view.open_repairs == []
    assert view.repairs[0]['completionDate'] is not None

    view.status_filter = 'pending'
    assert view.repairs == []
    view.close()


def test_repair_requires_a_description(api, cache, session, toaster, pool_client):
    view = RepairsView(api, cache, toaster=toaster)
    assert view.report({'clientId': pool_client.id, 'issueType': 'Heater', 'description': ''}) is None
    assert session.requests_for('POST', '/api/repairs') == []
    view.close()


# Business

def test_business_table_create_updates_rows_and_dashboard(api, cache, toaster):
    view = BusinessTableView(api, cache, 'expenses', time_range='day', toaster=toaster)
    cache.wait_until_idle()
    assert view.metrics['expenses'] == 0

    view.create({'date': date.today().isoformat(), 'amount': '45.25', 'category': 'Chemicals'})
    cache.wait_until_idle()

    assert [row['category'] for row in view.rows] == ['Chemicals']
    assert view.metrics['expenses'] == 45.25
    view.close()


def test_business_edit_sends_only_changes(api, cache, session):
    view = BusinessTableView(api, cache, 'expenses')
    record = view.create({'date': '2024-06-01', 'amount': '45', 'category': 'Chemicals'})
    cache.wait_until_idle()

    view.edit(record['id'], {'amount': '60'})
    assert session.requests_for('PATCH')[-1] == ('PATCH', f"/api/business/expenses/{record['id']}", {'amount': 60.0})

    assert view.edit(record['id'], {'category': 'Chemicals'}) is None
    assert len(session.requests_for('PATCH')) == 1
    view.close()


def test_business_time_range_switch(api, cache, session):
    view = BusinessTableView(api, cache, 'inventory')
    cache.wait_until_idle()
    view.set_time_range('year')
    cache.wait_until_idle()

    assert view.dashboard['timeRange'] == 'year'
    assert cache.get_query_data(dashboard_key('month'))['timeRange'] == 'month'
    with pytest.raises(ValueError):
        view.set_time_range('decade')
    view.close()


def test_business_date_order_is_checked_before_sending(api, cache, session, toaster):
    view = BusinessTableView(api, cache, 'licenses', toaster=toaster)
    result = view.create({'name': 'Contractor', 'licenseNumber': 'C-1',
                          'issueDate': '2024-06-10', 'expiryDate': '2024-06-01'})
    assert result is None
    assert session.requests_for('POST') == []
    assert 'Expiry date must be on or after the issue date' in toaster.last.description
    view.close()


# Communications

def twilio_provider():
    return {'type': 'twilio', 'name': 'Office line', 'accountSid': 'AC1', 'authToken': 'token-9876',
            'phoneNumber': '+15550100'}


def test_providers_and_sms(api, cache, toaster, pool_client):
    view = CommunicationsView(api, cache, toaster=toaster)
    view.add_provider(twilio_provider())
    cache.wait_until_idle()
    assert [provider['authToken'] for provider in view.providers] == ['***9876']

    twilio = MagicMock(status_code=201)
    twilio.json.return_value = {'sid': 'SM1', 'status': 'queued'}
    with patch('smartwater.services.sms.requests.post', return_value=twilio):
        view.send_sms({'to': '+15550123', 'body': 'On our way', 'clientId': pool_client.id})
    assert toaster.last.title == 'Message sent'

    cache.fetch_query(('/api/communications', 'log'))
    assert [entry['externalId'] for entry in view.log] == ['SM1']
    view.close()


def test_sync_and_link(api, cache, toaster, project):
    view = CommunicationsView(api, cache, toaster=toaster)
    view.add_provider({'type': 'gmail', 'name': 'Inbox', 'accessToken': 'ya29'})
    messages = [{
        'external_id': 'g1', 'thread_id': None, 'subject': 'Permit approved', 'from_address': 'city@example.gov',
        'to_addresses': [], 'cc': [], 'body': '', 'is_read': False,
        'received_at': datetime(2024, 6, 2, tzinfo=timezone.utc),
    }]
    with patch('smartwater.routes.emails.fetch_messages', return_value=messages):
        view.sync()
    cache.wait_until_idle()

    assert (toaster.last.title, toaster.last.description) == ('Inbox synced', '1 new message(s)')
    email_id = view.inbox[0]['id']

    assert view.link_email(email_id, 'project', project.id)['targetId'] == project.id
    assert view.link_email(email_id, 'project', project.id) is None
    assert toaster.last.variant == 'destructive'
    assert toaster.last.description.startswith('409: ')
    view.close()


def test_sms_needs_a_message(api, cache, session, toaster):
    view = CommunicationsView(api, cache, toaster=toaster)
    assert view.send_sms({'to': '+15550123', 'body': ''}) is None
    assert session.requests_for('POST', '/api/sms/send') == []
    view.close()
