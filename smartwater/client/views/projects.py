"""Project list, deletion confirmation and phase editing"""
from dataclasses import dataclass, field
from typing import List

from smartwater.client import resources
from smartwater.client.events import request_tab
from smartwater.client.forms import Form
from smartwater.client.views.base import EntityView
from smartwater.schemas.project import PhaseSchema, ProjectSchema

# count key -> (singular, plural)
DELETION_LABELS = (
    ('phases', 'phase', 'phases'),
    ('documents', 'document', 'documents'),
    ('workOrders', 'work order', 'work orders'),
    ('emailLinks', 'linked email', 'linked emails'),
)


def deletion_lines(counts):
    """One line per related record type that would be deleted, e.g. "3 phases" """
    lines = []
    for key, singular, plural in DELETION_LABELS:
        count = counts.get(key) or 0
        if count > 0:
            lines.append(f"{count} {singular if count == 1 else plural}")
    return lines


@dataclass
class DeleteConfirmation:
    project_id: int
    name: str
    counts: dict
    lines: List[str] = field(default_factory=list)

    @property
    def message(self):
        if not self.lines:
            return f'Delete "{self.name}"? This cannot be undone.'
        return f'Delete "{self.name}" together with {", ".join(self.lines)}? This cannot be undone.'


class ProjectListView(EntityView):

    def __init__(self, api, cache, **kwargs):
        super().__init__(api, cache, **kwargs)
        self.repository = resources.projects(api, cache)
        self.show_archived = False
        self.status_filter = 'all'
        self.search = ''
        self.pending_delete = None
        self.watch(self.repository.list_key)

    @property
    def projects(self):
        return self.data(self.repository.list_key, [])

    @property
    def visible_projects(self):
        projects = self.projects
        if not self.show_archived:
            projects = [project for project in projects if not project.get('isArchived')]
        if self.status_filter != 'all':
            projects = [project for project in projects if project.get('status') == self.status_filter]
        if self.search:
            term = self.search.lower()
            projects = [project for project in projects if term in (project.get('name') or '').lower()]
        return projects

    def find(self, project_id):
        return next((project for project in self.projects if project['id'] == project_id), None)

    def create_project(self, values):
        form = Form(ProjectSchema, values)
        if not form.validate():
            self.form_errors(form)
            return None
        return self.run(self.repository.create_mutation(), form.payload(),
                        success='Project created', failure='Could not create project')

    def toggle_archive(self, project_id):
        project = self.find(project_id) or self.repository.fetch(project_id)
        archived = not project.get('isArchived')
        return self.run(
            self.repository.update_mutation(), (project_id, {'isArchived': archived}),
            success='Project archived' if archived else 'Project restored',
            failure='Could not update project',
        )

    def request_delete(self, project_id):
        """Load the deletion preview and hold it until confirmed or cancelled"""
        preview = self.get(f'/api/projects/{project_id}/deletion-preview')
        if preview is None:
            return None
        counts = preview.get('counts', {})
        self.pending_delete = DeleteConfirmation(
            project_id=project_id,
            name=preview['project']['name'],
            counts=counts,
            lines=deletion_lines(counts),
        )
        return self.pending_delete

    def cancel_delete(self):
        self.pending_delete = None

    def confirm_delete(self):
        if self.pending_delete is None:
            return None
        confirmation, self.pending_delete = self.pending_delete, None
        return self.run(self.repository.delete_mutation(), confirmation.project_id,
                        success=('Project deleted', f'"{confirmation.name}" was deleted'),
                        failure='Could not delete project')

    def open_project(self, project_id):
        project = self.find(project_id)
        title = project['name'] if project else f'Project {project_id}'
        return request_tab(self, f'/projects/{project_id}', title, icon='folder')


class ProjectPhasesView(EntityView):

    def __init__(self, api, cache, project_id, **kwargs):
        super().__init__(api, cache, **kwargs)
        self.project_id = project_id
        self.repository = resources.project_phases(api, cache, project_id)
        self.watch(self.repository.list_key)

    @property
    def phases(self):
        return sorted(self.data(self.repository.list_key, []), key=lambda phase: (phase.get('order') or 0, phase['id']))

    def find(self, phase_id):
        return next((phase for phase in self.phases if phase['id'] == phase_id), None)

    def edit_form(self, phase_id):
        return Form.from_record(PhaseSchema, self.find(phase_id))

    def add_phase(self, values):
        form = Form(PhaseSchema, {'projectId': self.project_id, **values})
        if not form.validate():
            self.form_errors(form)
            return None
        return self.run(self.repository.create_mutation(), form.payload(),
                        success='Phase added', failure='Could not add phase')

    def save_phase(self, phase_id, form):
        """PATCH only the fields the form changed; nothing is sent when none did"""
        if not form.validate():
            self.form_errors(form)
            return None
        changes = form.changed_fields()
        if not changes:
            return None
        return self.run(self.repository.update_mutation(), (phase_id, changes),
                        success='Phase updated', failure='Could not update phase')

    def edit_phase(self, phase_id, values):
        form = self.edit_form(phase_id)
        form.update(values)
        return self.save_phase(phase_id, form)

    def delete_phase(self, phase_id):
        return self.run(self.repository.delete_mutation(), phase_id,
                        success='Phase deleted', failure='Could not delete phase')
