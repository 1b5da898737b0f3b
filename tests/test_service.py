import pytest

from smartwater import db
from smartwater.models import Maintenance
from tests.conftest import auth_headers, make_client, make_org, make_user


@pytest.fixture
def technician(org):
    return make_user(org, username='tech', role='technician', name='Tina Tech')


def schedule(client, headers, pool_client, **fields):
    body = {'clientId': pool_client.id, 'scheduledDate': '2024-06-03', 'type': 'cleaning'}
    body.update(fields)
    return client.post('/api/maintenances', headers=headers, json=body)


# Maintenance

def test_schedule_maintenance(client, headers, pool_client):
    response = schedule(client, headers, pool_client, scheduledTime='09:30')
    assert response.status_code == 201
    data = response.get_json()
    assert data['status'] == 'scheduled'
    assert data['scheduledTime'] == '09:30:00'
    assert data['client']['name'] == 'John Smith'
    assert data['technician'] is None


def test_maintenance_type_is_validated(client, headers, pool_client):
    response = schedule(client, headers, pool_client, type='party')
    assert response.status_code == 400
    assert response.get_json()['details'][0]['field'] == 'type'


def test_maintenance_filters(client, headers, pool_client, technician):
    schedule(client, headers, pool_client, scheduledDate='2024-06-01')
    schedule(client, headers, pool_client, scheduledDate='2024-06-10', technicianId=technician.id)
    schedule(client, headers, pool_client, scheduledDate='2024-07-01', status='completed')

    def dates(query):
        return [row['scheduledDate'] for row in client.get(f'/api/maintenances{query}', headers=headers).get_json()]

    assert dates('') == ['2024-06-01', '2024-06-10', '2024-07-01']
    assert dates('?from=2024-06-05&to=2024-06-30') == ['2024-06-10']
    assert dates(f'?technicianId={technician.id}') == ['2024-06-10']
    assert dates('?status=completed') == ['2024-07-01']


def test_clients_see_their_own_visits(client, headers, org, pool_client):
    neighbor = make_client(org, username='neighbor', name='Ned')
    schedule(client, headers, pool_client)
    other = schedule(client, headers, neighbor).get_json()

    client_headers = auth_headers(pool_client.user)
    assert len(client.get('/api/maintenances', headers=client_headers).get_json()) == 1
    assert client.get(f"/api/maintenances/{other['id']}", headers=client_headers).status_code == 403


def test_assign_technician(client, headers, pool_client, technician, admin):
    visit = schedule(client, headers, pool_client).get_json()
    url = f"/api/maintenances/{visit['id']}/technician"

    assigned = client.patch(url, headers=headers, json={'technicianId': technician.id}).get_json()
    assert assigned['technician']['name'] == 'Tina Tech'

    response = client.patch(url, headers=headers, json={'technicianId': admin.id})
    assert response.status_code == 400
    assert response.get_json()['error'] == 'Assigned user is not a technician'

    unassigned = client.patch(url, headers=headers, json={'technicianId': None}).get_json()
    assert unassigned['technicianId'] is None


def test_technician_from_another_organization_is_forbidden(client, headers, pool_client):
    outsider = make_user(make_org('Rival Pools'), username='rival-tech', role='technician')
    visit = schedule(client, headers, pool_client).get_json()
    response = client.patch(f"/api/maintenances/{visit['id']}/technician", headers=headers,
                            json={'technicianId': outsider.id})
    assert response.status_code == 403


def test_completing_by_status_sets_the_flag(client, headers, pool_client):
    visit = schedule(client, headers, pool_client).get_json()
    updated = client.patch(f"/api/maintenances/{visit['id']}", headers=headers, json={'status': 'completed'})
    assert updated.get_json()['completed'] is True


def test_service_report_records_readings_and_completes(client, pool_client, headers, technician):
    visit = schedule(client, headers, pool_client).get_json()
    response = client.post(f"/api/maintenances/{visit['id']}/service-report", headers=auth_headers(technician), json={
        'tasksCompleted': ['Skimmed', 'Backwashed filter'], 'ph': 7.4, 'chlorine': '2.5', 'cyanuricAcid': 40,
    })
    assert response.status_code == 201
    data = response.get_json()
    assert data['maintenance']['status'] == 'completed'
    assert data['maintenance']['completed'] is True
    assert data['report']['technicianId'] == technician.id
    assert data['report']['waterReadings']['ph'] == 7.4
    assert data['report']['waterReadings']['cyanuricAcid'] == 40.0
    assert data['report']['waterReadings']['salinity'] is None

    readings = client.get(f"/api/maintenances/{visit['id']}/water-readings", headers=headers).get_json()
    assert [report['tasksCompleted'] for report in readings] == [['Skimmed', 'Backwashed filter']]


def test_service_report_can_leave_the_visit_open(client, headers, pool_client):
    visit = schedule(client, headers, pool_client).get_json()
    response = client.post(f"/api/maintenances/{visit['id']}/service-report", headers=headers,
                           json={'notes': 'Gate locked', 'markCompleted': False})
    assert response.get_json()['maintenance']['status'] == 'scheduled'


def test_implausible_reading_is_rejected(client, headers, pool_client):
    visit = schedule(client, headers, pool_client).get_json()
    response = client.post(f"/api/maintenances/{visit['id']}/service-report", headers=headers, json={'ph': 15})
    assert response.status_code == 400
    assert response.get_json()['details'][0]['field'] == 'ph'
    assert db.session.get(Maintenance, visit['id']).status == 'scheduled'


def test_service_report_technician_must_be_a_technician_of_the_organization(client, headers, pool_client, admin):
    visit = schedule(client, headers, pool_client).get_json()
    url = f"/api/maintenances/{visit['id']}/service-report"
    outsider = make_user(make_org('Rival Pools'), username='rival-admin')

    assert client.post(url, headers=headers, json={'technicianId': outsider.id}).status_code == 403
    response = client.post(url, headers=headers, json={'technicianId': admin.id})
    assert response.status_code == 400
    assert response.get_json()['error'] == 'Reporting user is not a technician'
    assert client.get(f"/api/maintenances/{visit['id']}/water-readings", headers=headers).get_json() == []


@pytest.mark.parametrize('query', ['?from=notadate', '?to=2024-13-45'])
def test_malformed_date_filter_is_a_bad_request(client, headers, query):
    response = client.get(f'/api/maintenances{query}', headers=headers)
    assert response.status_code == 400
    assert response.get_json()['error'] == 'from and to must be ISO dates'


def test_delete_maintenance(client, headers, pool_client):
    visit = schedule(client, headers, pool_client).get_json()
    assert client.delete(f"/api/maintenances/{visit['id']}", headers=headers).status_code == 200
    assert client.get(f"/api/maintenances/{visit['id']}", headers=headers).status_code == 404


# Repairs

def report_repair(client, headers, **fields):
    body = {'issueType': 'Pump', 'description': 'Pump is making a grinding noise'}
    body.update(fields)
    return client.post('/api/repairs', headers=headers, json=body)


def test_client_reported_repair_is_pending(client, pool_client, technician):
    response = report_repair(client, auth_headers(pool_client.user), clientId=999, status='scheduled',
                             technicianId=technician.id, scheduledDate='2024-06-03')
    assert response.status_code == 201
    data = response.get_json()
    assert data['clientId'] == pool_client.id
    assert data['status'] == 'pending'
    assert data['technicianId'] is None
    assert data['scheduledDate'] is None


def test_staff_repair_needs_a_client(client, headers):
    response = report_repair(client, headers)
    assert response.status_code == 400
    assert response.get_json()['details'][0]['field'] == 'clientId'


def test_assigning_a_technician_moves_pending_to_assigned(client, headers, pool_client, technician):
    repair = report_repair(client, headers, clientId=pool_client.id).get_json()
    updated = client.patch(f"/api/repairs/{repair['id']}", headers=headers, json={'technicianId': technician.id})
    assert updated.get_json()['status'] == 'assigned'


def test_completing_a_repair_stamps_the_completion_date(client, headers, pool_client):
    repair = report_repair(client, headers, clientId=pool_client.id).get_json()
    assert repair['completionDate'] is None
    updated = client.patch(f"/api/repairs/{repair['id']}", headers=headers, json={'status': 'completed'}).get_json()
    assert updated['status'] == 'completed'
    assert updated['completionDate'] is not None


def test_repair_filters_and_visibility(client, headers, org, pool_client):
    neighbor = make_client(org, username='neighbor', name='Ned')
    report_repair(client, headers, clientId=pool_client.id, priority='high')
    other = report_repair(client, headers, clientId=neighbor.id).get_json()

    assert len(client.get(f'/api/repairs?clientId={neighbor.id}', headers=headers).get_json()) == 1
    client_headers = auth_headers(pool_client.user)
    own = client.get('/api/repairs', headers=client_headers).get_json()
    assert [row['priority'] for row in own] == ['high']
    assert client.get(f"/api/repairs/{other['id']}", headers=client_headers).status_code == 403


def test_clients_cannot_update_repairs(client, headers, pool_client):
    repair = report_repair(client, headers, clientId=pool_client.id).get_json()
    response = client.patch(f"/api/repairs/{repair['id']}", headers=auth_headers(pool_client.user),
                            json={'status': 'completed'})
    assert response.status_code == 403


def test_delete_repair(client, headers, pool_client):
    repair = report_repair(client, headers, clientId=pool_client.id).get_json()
    assert client.delete(f"/api/repairs/{repair['id']}", headers=headers).status_code == 200
    assert client.get('/api/repairs', headers=headers).get_json() == []
