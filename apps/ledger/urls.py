from django.urls import path
from . import views

app_name = 'ledger'

urlpatterns = [
    # Agents
    path('agents/', views.agent_list, name='agent-list'),
    path('agents/recompute/', views.agent_recompute_all, name='agent-recompute-all'),
    path('agents/<int:agent_id>/recompute/', views.agent_recompute, name='agent-recompute'),

    # District revenue
    path('revenue/', views.revenue_list, name='revenue-list'),

    # Reconciliation queue
    path('reconciliation/', views.reconciliation_list, name='reconciliation-list'),
    path('reconciliation/process/', views.reconciliation_process, name='reconciliation-process'),
]
