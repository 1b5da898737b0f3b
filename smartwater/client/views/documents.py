"""Project document gallery: type filter and uploads"""
import os
from dataclasses import dataclass
from typing import Optional

from smartwater.client import resources
from smartwater.client.forms import Form
from smartwater.client.mutations import Mutation
from smartwater.client.views.base import EntityView
from smartwater.schemas.project import DocumentSchema

MAX_UPLOAD_SIZE = 50 * 1024 * 1024

DOCUMENT_TYPES = ('blueprint', 'permit', 'contract', 'invoice', 'photo', 'report', 'render', 'other')


@dataclass
class FileData:
    filename: str
    stream: object
    size: Optional[int] = None
    content_type: Optional[str] = None

    def byte_size(self):
        if self.size is not None:
            return self.size
        position = self.stream.tell()
        self.stream.seek(0, os.SEEK_END)
        size = self.stream.tell()
        self.stream.seek(position)
        return size


def multipart_fields(payload):
    """Form fields as strings; lists are comma-joined and empty values dropped"""
    fields = {}
    for key, value in payload.items():
        if value is None or value == []:
            continue
        if isinstance(value, bool):
            value = 'true' if value else 'false'
        elif isinstance(value, list):
            value = ','.join(str(item) for item in value)
        fields[key] = str(value)
    return fields


class DocumentGalleryView(EntityView):

    def __init__(self, api, cache, project_id, **kwargs):
        super().__init__(api, cache, **kwargs)
        self.project_id = project_id
        self.repository = resources.project_documents(api, cache, project_id)
        self.document_type_filter = 'all'
        self.watch(self.repository.list_key)

    @property
    def documents(self):
        return self.data(self.repository.list_key, [])

    @property
    def visible_documents(self):
        if self.document_type_filter == 'all':
            return list(self.documents)
        return [doc for doc in self.documents if doc.get('documentType') == self.document_type_filter]

    def set_filter(self, document_type):
        if document_type != 'all' and document_type not in DOCUMENT_TYPES:
            raise ValueError(f"Unknown document type: {document_type}")
        self.document_type_filter = document_type

    def upload(self, file, title=None, document_type='other', phase_id=None, description=None,
               is_public=False, tags=''):
        """
        Upload ``file`` (a FileData) with its metadata.

        Files over 50MB are refused here with a destructive toast and never
        sent. Returns the stored document, or None when nothing was uploaded.
        """
        if file is None:
            self.toaster.toast('No file selected', 'Choose a file to upload', 'destructive')
            return None
        if file.byte_size() > MAX_UPLOAD_SIZE:
            self.toaster.toast('File too large', 'Maximum file size is 50MB', 'destructive')
            return None

        form = Form(DocumentSchema, {
            'title': title or file.filename,
            'description': description,
            'documentType': document_type,
            'phaseId': phase_id,
            'isPublic': is_public,
            'tags': tags,
        })
        if not form.validate():
            self.form_errors(form)
            return None

        mutation = Mutation(
            self.cache,
            lambda fields: self.api.post(
                self.repository.create_path,
                data=fields,
                files={'file': (file.filename, file.stream, file.content_type or 'application/octet-stream')},
            ),
            invalidates=self.repository.affected(),
        )
        return self.run(mutation, multipart_fields(form.payload()),
                        success=('Document uploaded', f"{file.filename} was added to the project"),
                        failure='Upload failed')

    def update_document(self, document_id, changes):
        return self.run(self.repository.update_mutation(), (document_id, changes),
                        success='Document updated', failure='Update failed')

    def delete_document(self, document_id):
        return self.run(self.repository.delete_mutation(), document_id,
                        success='Document deleted', failure='Delete failed')

    def download_url(self, document_id):
        result = self.api.get(f'/api/documents/{document_id}/download')
        return result['url'] if result else None
