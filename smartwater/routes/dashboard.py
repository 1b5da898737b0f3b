from flask import Blueprint, request, jsonify
from smartwater.models.client import Client
from smartwater.models.maintenance import Maintenance
from smartwater.models.project import Project
from smartwater.models.repair import Repair
from smartwater.models.work_order import WorkOrder
from smartwater.utils.auth import require_auth
from smartwater.utils.tenancy import scoped, current_org_id
from datetime import date, timedelta

bp = Blueprint('dashboard', __name__)


@bp.route('/summary', methods=['GET'])
@require_auth
def get_summary():
    """
    Headline counts for the home screen
    ---
    tags:
      - Dashboard
    security:
      - Bearer: []
    responses:
      200:
        description: Counts of active projects, upcoming maintenance, open repairs and clients
    """
    user = request.current_user
    today = date.today()

    def by_org(query):
        query = query.join(Client)
        if user.role != 'system_admin':
            query = query.filter(Client.organization_id == current_org_id())
        if user.role == 'client':
            query = query.filter(Client.user_id == user.id)
        return query

    projects = by_org(Project.query).filter(Project.is_archived.is_(False))
    maintenances = by_org(Maintenance.query).filter(Maintenance.status != 'cancelled')
    repairs = by_org(Repair.query)

    summary = {
        'activeProjects': projects.filter(Project.status.in_(('planning', 'pending', 'in_progress', 'review'))).count(),
        'completedProjects': projects.filter(Project.status == 'completed').count(),
        'upcomingMaintenances': maintenances.filter(
            Maintenance.scheduled_date >= today,
            Maintenance.scheduled_date <= today + timedelta(days=7),
            Maintenance.completed.is_(False),
        ).count(),
        'todayMaintenances': maintenances.filter(Maintenance.scheduled_date == today).count(),
        'openRepairs': repairs.filter(Repair.status != 'completed').count(),
        'urgentRepairs': repairs.filter(Repair.status != 'completed', Repair.priority == 'high').count(),
    }
    if user.role != 'client':
        summary['totalClients'] = scoped(Client.query, Client).count()
        summary['openWorkOrders'] = scoped(WorkOrder.query, WorkOrder) \
            .filter(WorkOrder.status.in_(('pending', 'scheduled', 'in_progress'))).count()
    return jsonify(summary), 200
