import logging
from datetime import date, timedelta

import pytest
from sqlalchemy import inspect

from config import TestingConfig
from smartwater import create_app, db
from smartwater.routes.business import range_start
from smartwater.utils.db_init import initialize_database, model_enum_types
from tests.conftest import auth_headers, make_org, make_project, make_user


@pytest.mark.parametrize('time_range, expected', [
    ('day', date(2024, 6, 15)),
    ('week', date(2024, 6, 8)),
    ('month', date(2024, 6, 1)),
    ('year', date(2024, 1, 1)),
    ('decade', date(2024, 6, 1)),
])
def test_range_start(time_range, expected):
    assert range_start(time_range, today=date(2024, 6, 15)) == expected


def test_dashboard_metrics(client, headers):
    today = date.today().isoformat()
    client.post('/api/business/expenses', headers=headers, json={'date': today, 'amount': 120.5, 'category': 'Chemicals'})
    client.post('/api/business/expenses', headers=headers, json={'date': today, 'amount': '79.50', 'category': 'Fuel'})
    client.post('/api/business/expenses', headers=headers, json={'date': '2001-01-01', 'amount': 999, 'category': 'Old'})
    client.post('/api/business/inventory', headers=headers,
                json={'name': 'Chlorine tabs', 'unitCost': 2.5, 'quantity': 4, 'minimumStock': 10})
    client.post('/api/business/inventory', headers=headers, json={'name': 'Skimmer net', 'unitCost': 20, 'quantity': 3})
    client.post('/api/business/purchase-orders', headers=headers,
                json={'orderNumber': 'PO-1', 'orderDate': today, 'status': 'ordered', 'total': 300})
    client.post('/api/business/purchase-orders', headers=headers,
                json={'orderNumber': 'PO-2', 'orderDate': today, 'status': 'received', 'total': 50})

    response = client.get('/api/business/dashboard?timeRange=day', headers=headers)
    assert response.status_code == 200
    data = response.get_json()
    assert data['timeRange'] == 'day'
    assert data['metrics'] == {
        'totalRevenue': 0.0,
        'expenses': 200.0,
        'profit': -200.0,
        'profitMargin': 0,
        'inventoryValue': 70.0,
        'lowStockItems': 1,
        'outstandingInvoices': 1,
    }
    assert [item['name'] for item in data['lowStockItems']] == ['Chlorine tabs']
    assert len(data['recentExpenses']) == 2


def test_dashboard_falls_back_to_month(client, headers):
    assert client.get('/api/business/dashboard?timeRange=forever', headers=headers).get_json()['timeRange'] == 'month'


@pytest.mark.parametrize('path, body, changes', [
    ('expenses', {'date': '2024-06-01', 'amount': 45, 'category': 'Chemicals'}, {'amount': 60}),
    ('vendors', {'name': 'Pool Supply Co', 'email': 'sales@poolsupply.com'}, {'phone': '555-0199'}),
    ('inventory', {'name': 'Chlorine tabs', 'quantity': 10}, {'quantity': 8}),
    ('purchase-orders', {'orderNumber': 'PO-7', 'orderDate': '2024-06-01'}, {'status': 'approved'}),
    ('licenses', {'name': 'Contractor', 'licenseNumber': 'C-53'}, {'expiryDate': '2026-01-01'}),
    ('insurance', {'provider': 'Acme Mutual', 'policyNumber': 'GL-1'}, {'premium': 1200}),
    ('reports', {'title': 'Q2', 'reportType': 'quarterly', 'periodStart': '2024-04-01', 'periodEnd': '2024-06-30'},
     {'notes': 'Draft'}),
])
def test_business_resource_crud(client, headers, path, body, changes):
    base = f'/api/business/{path}'
    created = client.post(base, headers=headers, json=body)
    assert created.status_code == 201
    record_id = created.get_json()['id']

    updated = client.patch(f'{base}/{record_id}', headers=headers, json=changes)
    assert updated.status_code == 200
    for key, value in changes.items():
        assert updated.get_json()[key] == value

    assert [row['id'] for row in client.get(base, headers=headers).get_json()] == [record_id]
    assert client.delete(f'{base}/{record_id}', headers=headers).status_code == 200
    assert client.get(f'{base}/{record_id}', headers=headers).status_code == 404


@pytest.mark.parametrize('path, body', [
    ('purchase-orders', {'orderNumber': 'PO-8', 'orderDate': '2024-06-10', 'expectedDelivery': '2024-06-01'}),
    ('licenses', {'name': 'Contractor', 'licenseNumber': 'C-1', 'issueDate': '2024-06-10', 'expiryDate': '2024-06-01'}),
    ('insurance', {'provider': 'Acme', 'policyNumber': 'GL', 'startDate': '2024-06-10', 'endDate': '2024-06-01'}),
    ('reports', {'title': 'Q', 'reportType': 'q', 'periodStart': '2024-06-10', 'periodEnd': '2024-06-01'}),
])
def test_business_dates_must_be_ordered(client, headers, path, body):
    response = client.post(f'/api/business/{path}', headers=headers, json=body)
    assert response.status_code == 400
    assert response.get_json()['details'][0]['field'] == '__all__'


def test_expense_amount_must_be_positive(client, headers):
    response = client.post('/api/business/expenses', headers=headers,
                           json={'date': '2024-06-01', 'amount': 0, 'category': 'Fuel'})
    assert response.status_code == 400
    assert response.get_json()['details'][0]['field'] == 'amount'


def test_expense_vendor_must_be_owned(client, headers):
    outsider = make_user(make_org('Rival Pools'), username='rival')
    vendor = client.post('/api/business/vendors', headers=auth_headers(outsider), json={'name': 'Their Vendor'}).get_json()
    response = client.post('/api/business/expenses', headers=headers,
                           json={'date': '2024-06-01', 'amount': 5, 'category': 'Fuel', 'vendorId': vendor['id']})
    assert response.status_code == 403


def test_business_tables_are_scoped_to_the_organization(client, headers):
    outsider = make_user(make_org('Rival Pools'), username='rival')
    client.post('/api/business/vendors', headers=auth_headers(outsider), json={'name': 'Their Vendor'})
    assert client.get('/api/business/vendors', headers=headers).get_json() == []


# Home dashboard and system routes

def test_dashboard_summary(client, headers, org, pool_client):
    make_project(pool_client, name='Active')
    make_project(pool_client, name='Done', status='completed')
    make_project(pool_client, name='Shelved', is_archived=True)
    client.post('/api/maintenances', headers=headers, json={
        'clientId': pool_client.id, 'scheduledDate': (date.today() + timedelta(days=2)).isoformat(), 'type': 'cleaning',
    })
    client.post('/api/repairs', headers=headers, json={
        'clientId': pool_client.id, 'issueType': 'Leak', 'description': 'Drip at the pump', 'priority': 'high',
    })

    summary = client.get('/api/dashboard/summary', headers=headers).get_json()
    assert summary['activeProjects'] == 1
    assert summary['completedProjects'] == 1
    assert summary['upcomingMaintenances'] == 1
    assert summary['openRepairs'] == 1
    assert summary['urgentRepairs'] == 1
    assert summary['totalClients'] == 1

    client_summary = client.get('/api/dashboard/summary', headers=auth_headers(pool_client.user)).get_json()
    assert 'totalClients' not in client_summary
    assert client_summary['activeProjects'] == 1


def test_health(client):
    response = client.get('/api/health')
    assert response.status_code == 200
    assert response.get_json()['database'] == 'ok'


def test_log_level_comes_from_config(tmp_path):
    class QuietConfig(TestingConfig):
        SQLALCHEMY_DATABASE_URI = f"sqlite:///{tmp_path / 'quiet.db'}"
        LOG_LEVEL = 'WARNING'

    create_app(QuietConfig)
    assert logging.getLogger('smartwater').level == logging.WARNING
    create_app(TestingConfig)
    assert logging.getLogger('smartwater').level == logging.getLevelName(TestingConfig.LOG_LEVEL)


def test_google_maps_key(app, client, headers):
    app.config['GOOGLE_MAPS_API_KEY'] = None
    assert client.get('/api/google-maps-key', headers=headers).status_code == 404
    app.config['GOOGLE_MAPS_API_KEY'] = 'maps-key'
    assert client.get('/api/google-maps-key', headers=headers).get_json() == {'apiKey': 'maps-key'}


def test_initialize_database_is_idempotent(app):
    assert initialize_database() is True
    assert initialize_database() is True
    assert {'projects', 'service_reports', 'email_links'} <= set(inspect(db.engine).get_table_names())
    assert 'repair_status_enum' in model_enum_types()
