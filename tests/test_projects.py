import io
import os

from smartwater import db
from smartwater.models import ProjectDocument
from smartwater.models.communication import Email, EmailLink
from tests.conftest import auth_headers, make_client, make_org, make_phase, make_project, make_user


def upload(client, headers, project_id, content=b'%PDF-1.4 plans', filename='plans.pdf', **fields):
    data = {'file': (io.BytesIO(content), filename)}
    data.update(fields)
    return client.post(f'/api/projects/{project_id}/documents', data=data, headers=headers,
                       content_type='multipart/form-data')


# Clients

def test_create_client_derives_a_free_username(client, headers, org):
    make_user(org, username='maria')
    response = client.post('/api/clients', headers=headers, json={
        'name': 'Maria Lopez', 'email': 'Maria@Example.com', 'companyName': 'Lopez Villa',
    })
    assert response.status_code == 201
    data = response.get_json()
    assert data['user']['username'] == 'maria2'
    assert data['user']['email'] == 'maria@example.com'
    assert data['client']['contractType'] == 'residential'


def test_create_client_rejects_existing_email(client, headers, pool_client):
    response = client.post('/api/clients', headers=headers, json={'name': 'Dup', 'email': 'jsmith@example.com'})
    assert response.status_code == 409


def test_search_clients(client, headers, org, pool_client):
    make_client(org, username='acme', name='Acme Hotel', company_name='Acme Resorts')
    response = client.get('/api/clients?search=resort', headers=headers)
    assert [row['companyName'] for row in response.get_json()] == ['Acme Resorts']


def test_client_sees_only_itself(client, org, pool_client):
    other = make_client(org, username='neighbor', name='Ned')
    headers = auth_headers(pool_client.user)
    assert [row['id'] for row in client.get('/api/clients', headers=headers).get_json()] == [pool_client.id]
    assert client.get(f'/api/clients/{other.id}', headers=headers).status_code == 403


def test_update_client_splits_user_and_profile_fields(client, headers, pool_client):
    response = client.patch(f'/api/clients/{pool_client.id}', headers=headers,
                            json={'phone': '555-0100', 'customInstructions': 'Gate code 1234'})
    assert response.status_code == 200
    data = response.get_json()
    assert data['user']['phone'] == '555-0100'
    assert data['client']['customInstructions'] == 'Gate code 1234'
    assert data['user']['name'] == 'John Smith'


def test_update_client_email_clash(client, headers, admin, pool_client):
    response = client.patch(f'/api/clients/{pool_client.id}', headers=headers, json={'email': 'admin@example.com'})
    assert response.status_code == 409


def test_delete_client_removes_its_user(client, headers, pool_client):
    user_id = pool_client.user_id
    assert client.delete(f'/api/clients/{pool_client.id}', headers=headers).status_code == 200
    from smartwater.models import User
    assert db.session.get(User, user_id) is None


# Projects

def test_create_and_list_projects(client, headers, pool_client):
    response = client.post('/api/projects', headers=headers, json={
        'clientId': pool_client.id, 'name': 'Lap Pool', 'startDate': '2024-06-01', 'budget': '45000',
    })
    assert response.status_code == 201
    created = response.get_json()
    assert created['status'] == 'pending'
    assert created['budget'] == 45000.0
    assert created['client']['name'] == 'John Smith'

    listed = client.get('/api/projects', headers=headers).get_json()
    assert [project['name'] for project in listed] == ['Lap Pool']


def test_project_dates_must_be_ordered(client, headers, pool_client):
    response = client.post('/api/projects', headers=headers, json={
        'clientId': pool_client.id, 'name': 'Lap Pool', 'startDate': '2024-06-01',
        'estimatedCompletionDate': '2024-05-01',
    })
    assert response.status_code == 400
    assert response.get_json()['details'][0]['field'] == '__all__'


def test_archived_projects_are_listed_unless_excluded(client, headers, pool_client):
    make_project(pool_client, name='Current')
    make_project(pool_client, name='Old', is_archived=True)
    assert len(client.get('/api/projects', headers=headers).get_json()) == 2
    names = [p['name'] for p in client.get('/api/projects?includeArchived=false', headers=headers).get_json()]
    assert names == ['Current']


def test_another_organizations_project_is_forbidden(client, headers):
    other = make_org('Rival Pools')
    foreign = make_project(make_client(other, username='rival-client'))
    response = client.get(f'/api/projects/{foreign.id}', headers=headers)
    assert response.status_code == 403
    assert client.patch(f'/api/projects/{foreign.id}', headers=headers, json={'name': 'x'}).status_code == 403


def test_missing_project_is_404(client, headers):
    response = client.get('/api/projects/999', headers=headers)
    assert response.status_code == 404
    assert response.get_json()['error'] == 'Project not found'


def test_patch_only_writes_given_fields(client, headers, project):
    response = client.patch(f'/api/projects/{project.id}', headers=headers, json={'isArchived': True})
    data = response.get_json()
    assert data['isArchived'] is True
    assert data['name'] == 'Backyard Pool'
    assert data['startDate'] == '2024-05-01'


def test_patch_validates_against_the_current_record(client, headers, project):
    response = client.patch(f'/api/projects/{project.id}', headers=headers,
                            json={'actualCompletionDate': '2024-01-01'})
    assert response.status_code == 400


def test_deletion_preview_and_delete(client, headers, org, project):
    make_phase(project, 'Excavation')
    make_phase(project, 'Plumbing', order=1)
    upload(client, headers, project.id)
    email = Email(organization_id=org.id, subject='Permit approved')
    db.session.add(email)
    db.session.flush()
    db.session.add(EmailLink(email_id=email.id, link_type='project', target_id=project.id))
    db.session.commit()

    preview = client.get(f'/api/projects/{project.id}/deletion-preview', headers=headers).get_json()
    assert preview['project'] == {'id': project.id, 'name': 'Backyard Pool'}
    assert preview['counts'] == {'phases': 2, 'documents': 1, 'workOrders': 0, 'emailLinks': 1}

    response = client.delete(f'/api/projects/{project.id}', headers=headers)
    assert response.status_code == 200
    assert response.get_json()['deleted'] == preview['counts']
    assert EmailLink.query.count() == 0
    assert ProjectDocument.query.count() == 0
    assert db.session.get(Email, email.id) is not None


def test_clients_cannot_create_projects(client, pool_client):
    response = client.post('/api/projects', headers=auth_headers(pool_client.user), json={
        'clientId': pool_client.id, 'name': 'Mine', 'startDate': '2024-06-01',
    })
    assert response.status_code == 403


# Phases

def test_phases_are_listed_in_order(client, headers, project):
    make_phase(project, 'Finishing', order=2)
    make_phase(project, 'Excavation', order=0)
    make_phase(project, 'Plumbing', order=1)
    names = [phase['name'] for phase in client.get(f'/api/projects/{project.id}/phases', headers=headers).get_json()]
    assert names == ['Excavation', 'Plumbing', 'Finishing']


def test_create_phase_uses_the_path_project(client, headers, project):
    response = client.post(f'/api/projects/{project.id}/phases', headers=headers,
                           json={'name': 'Tiling', 'projectId': 999, 'order': '3'})
    assert response.status_code == 201
    assert response.get_json()['projectId'] == project.id
    assert response.get_json()['order'] == 3


def test_update_phase_is_partial(client, headers, project):
    phase = make_phase(project, 'Excavation', cost=1500)
    response = client.patch(f'/api/project-phases/{phase.id}', headers=headers, json={'percentComplete': 60})
    data = response.get_json()
    assert data['percentComplete'] == 60
    assert data['cost'] == 1500.0
    assert data['name'] == 'Excavation'


def test_update_phase_rejects_inverted_dates(client, headers, project):
    phase = make_phase(project, 'Excavation')
    response = client.patch(f'/api/project-phases/{phase.id}', headers=headers,
                            json={'startDate': '2024-06-10', 'endDate': '2024-06-01'})
    assert response.status_code == 400


def test_delete_phase(client, headers, project):
    phase = make_phase(project, 'Excavation')
    assert client.delete(f'/api/project-phases/{phase.id}', headers=headers).status_code == 200
    assert client.get(f'/api/projects/{project.id}/phases', headers=headers).get_json() == []


# Documents

def test_upload_defaults_title_to_filename(app, client, headers, project):
    response = upload(client, headers, project.id, documentType='blueprint', tags='deck, coping')
    assert response.status_code == 201
    data = response.get_json()
    assert data['title'] == 'plans.pdf'
    assert data['documentType'] == 'blueprint'
    assert data['tags'] == ['deck', 'coping']
    assert data['size'] == len(b'%PDF-1.4 plans')
    assert data['url'].startswith('/api/uploads/documents/')
    stored = os.path.join(app.config['UPLOAD_FOLDER'], data['url'][len('/api/uploads/'):])
    assert os.path.exists(stored)


def test_upload_requires_a_file(client, headers, project):
    response = client.post(f'/api/projects/{project.id}/documents', headers=headers,
                           data={'title': 'Nothing'}, content_type='multipart/form-data')
    assert response.status_code == 400
    assert response.get_json()['error'] == 'No file provided'


def test_upload_rejects_unknown_document_type(client, headers, project):
    response = upload(client, headers, project.id, documentType='spreadsheet')
    assert response.status_code == 400


def test_upload_rejects_phase_of_another_project(client, headers, pool_client, project):
    other_phase = make_phase(make_project(pool_client, name='Spa'), 'Excavation')
    response = upload(client, headers, project.id, phaseId=str(other_phase.id))
    assert response.status_code == 400
    assert response.get_json()['error'] == 'Phase does not belong to this project'


def test_oversized_upload_is_413(app, client, headers, project):
    app.config['MAX_CONTENT_LENGTH'] = 1024
    response = upload(client, headers, project.id, content=b'x' * 4096)
    assert response.status_code == 413
    assert response.get_json()['error'].startswith('File too large')


def test_documents_by_type(client, headers, project):
    upload(client, headers, project.id, documentType='permit')
    upload(client, headers, project.id, filename='deck.jpg', documentType='photo')
    permits = client.get(f'/api/projects/{project.id}/documents/type/permit', headers=headers).get_json()
    assert [document['documentType'] for document in permits] == ['permit']
    assert client.get(f'/api/projects/{project.id}/documents/type/memo', headers=headers).status_code == 400


def test_clients_see_public_documents_only(client, headers, pool_client, project):
    upload(client, headers, project.id, title='Contract', isPublic='true')
    private = upload(client, headers, project.id, title='Internal notes').get_json()

    client_headers = auth_headers(pool_client.user)
    titles = [d['title'] for d in client.get(f'/api/projects/{project.id}/documents', headers=client_headers).get_json()]
    assert titles == ['Contract']
    assert client.get(f"/api/documents/{private['id']}/download", headers=client_headers).status_code == 403


def test_download_url_for_local_storage(client, headers, project):
    document = upload(client, headers, project.id).get_json()
    response = client.get(f"/api/documents/{document['id']}/download", headers=headers)
    assert response.get_json() == {'url': document['url'], 'filename': 'plans.pdf', 'mimeType': document['mimeType']}

    served = client.get(document['url'], headers=headers)
    assert served.status_code == 200
    assert served.data == b'%PDF-1.4 plans'


def test_update_and_delete_document(app, client, headers, project):
    document = upload(client, headers, project.id).get_json()
    response = client.patch(f"/api/documents/{document['id']}", headers=headers, json={'isPublic': True})
    assert response.get_json()['isPublic'] is True
    assert response.get_json()['title'] == 'plans.pdf'

    assert client.delete(f"/api/documents/{document['id']}", headers=headers).status_code == 200
    stored = os.path.join(app.config['UPLOAD_FOLDER'], document['url'][len('/api/uploads/'):])
    assert not os.path.exists(stored)


# Work orders

def test_work_order_lifecycle(client, headers, project):
    response = client.post('/api/work-orders', headers=headers, json={
        'title': 'Install pump', 'projectId': project.id, 'priority': 'high', 'scheduledDate': '2024-06-03',
    })
    assert response.status_code == 201
    work_order = response.get_json()
    assert work_order['status'] == 'pending'

    updated = client.patch(f"/api/work-orders/{work_order['id']}", headers=headers, json={'status': 'scheduled'})
    assert updated.get_json()['status'] == 'scheduled'
    assert updated.get_json()['priority'] == 'high'

    listed = client.get(f'/api/work-orders?projectId={project.id}', headers=headers).get_json()
    assert [row['title'] for row in listed] == ['Install pump']

    assert client.delete(f"/api/work-orders/{work_order['id']}", headers=headers).status_code == 200


def test_work_order_origin_must_be_owned(client, headers):
    foreign = make_project(make_client(make_org('Rival Pools'), username='rival-client'))
    response = client.post('/api/work-orders', headers=headers, json={'title': 'Sneaky', 'projectId': foreign.id})
    assert response.status_code == 403


def test_technicians_see_their_own_work_orders(client, headers, org):
    tech = make_user(org, username='tech', role='technician')
    client.post('/api/work-orders', headers=headers, json={'title': 'Mine', 'technicianId': tech.id})
    client.post('/api/work-orders', headers=headers, json={'title': 'Not mine'})
    listed = client.get('/api/work-orders', headers=auth_headers(tech)).get_json()
    assert [row['title'] for row in listed] == ['Mine']


def test_client_cannot_read_another_clients_records(client, headers, org, pool_client):
    other = make_client(org, username='neighbour', name='Nina Neighbour')
    project = make_project(other, name='Neighbour Spa')
    make_phase(project, 'Excavation')
    visit = client.post('/api/maintenances', headers=headers, json={
        'clientId': other.id, 'scheduledDate': '2024-06-03', 'type': 'cleaning'}).get_json()
    client.post('/api/work-orders', headers=headers, json={'title': 'Private job for other', 'projectId': project.id})

    mine = auth_headers(pool_client.user)
    assert client.get(f'/api/projects/{project.id}/phases', headers=mine).status_code == 403
    assert client.get(f"/api/maintenances/{visit['id']}/water-readings", headers=mine).status_code == 403
    assert client.get('/api/work-orders', headers=mine).status_code == 403

    theirs = auth_headers(other.user)
    assert [phase['name'] for phase in client.get(f'/api/projects/{project.id}/phases', headers=theirs).get_json()] \
        == ['Excavation']
    assert client.get(f"/api/maintenances/{visit['id']}/water-readings", headers=theirs).status_code == 200


def test_technician_cannot_read_someone_elses_work_order(client, headers, org):
    tech = make_user(org, username='tech', role='technician')
    work_order = client.post('/api/work-orders', headers=headers, json={'title': 'Not mine'}).get_json()
    assert client.get(f"/api/work-orders/{work_order['id']}", headers=auth_headers(tech)).status_code == 403
