from django.urls import path

from .views import ConstraintsApplyView, FlowGenerateView, PackingEstimateView

urlpatterns = [
    path('packing/estimate', PackingEstimateView.as_view(), name='packing-estimate'),
    path('projects/<int:project_id>/flows/generate', FlowGenerateView.as_view(), name='flow-generate'),
    path('projects/<int:project_id>/constraints/apply', ConstraintsApplyView.as_view(), name='constraints-apply'),
]
