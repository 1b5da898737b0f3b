"""
View models: the state and actions behind each screen, independent of how
the screen is drawn.
"""

from smartwater.client.views.base import EntityView
from smartwater.client.views.business import BusinessTableView
from smartwater.client.views.clients import ClientListView, ClientDetailsView
from smartwater.client.views.communications import CommunicationsView
from smartwater.client.views.documents import DocumentGalleryView, FileData
from smartwater.client.views.login import LoginView, login_error_for
from smartwater.client.views.projects import ProjectListView, ProjectPhasesView
from smartwater.client.views.service import MaintenanceView, ServiceReportView, RepairsView

__all__ = [
    'EntityView', 'BusinessTableView', 'ClientListView', 'ClientDetailsView',
    'CommunicationsView', 'DocumentGalleryView', 'FileData', 'LoginView', 'login_error_for',
    'ProjectListView', 'ProjectPhasesView', 'MaintenanceView', 'ServiceReportView', 'RepairsView',
]
