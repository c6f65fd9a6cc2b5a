from django.conf import settings
from django.urls import path
from django.views.decorators.csrf import csrf_exempt

from hackernews.views import HackernewsGraphQLView


urlpatterns = [
    path('graphql/', csrf_exempt(HackernewsGraphQLView.as_view(graphiql=settings.DEBUG))),
]
