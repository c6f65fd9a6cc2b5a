# hackernews-comments-api -- links/store.py
#
# Permission is hereby granted, free of charge, to any person obtaining
# a copy of this software and associated documentation files (the
# "Software"), to deal in the Software without restriction, including
# without limitation the rights to use, copy, modify, merge, publish,
# distribute, sublicense, and/or sell copies of the Software, and to
# permit persons to whom the Software is furnished to do so, subject to
# the following conditions:
#
# The above copyright notice and this permission notice shall be
# included in all copies or substantial portions of the Software.
#
# THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND,
# EXPRESS OR IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF
# MERCHANTABILITY, FITNESS FOR A PARTICULAR PURPOSE AND
# NONINFRINGEMENT. IN NO EVENT SHALL THE AUTHORS OR COPYRIGHT HOLDERS BE
# LIABLE FOR ANY CLAIM, DAMAGES OR OTHER LIABILITY, WHETHER IN AN ACTION
# OF CONTRACT, TORT OR OTHERWISE, ARISING FROM, OUT OF OR IN CONNECTION
# WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN THE SOFTWARE.

import logging

import django_filters
from django.db import IntegrityError, connections, router, transaction
from django.db.models import Q

from links.models import CommentModel, LinkModel


logger = logging.getLogger(__name__)


# ========== store errors ==========

class StoreError(Exception):
    """Base class for the error kinds the store reports by name."""


class ForeignKeyViolation(StoreError):
    """An insert referenced a parent row that does not exist."""
    def __init__(self, table, link_id):
        self.table = table
        self.link_id = link_id
        super().__init__('{}: no link with id {}'.format(table, link_id))


# ========== feed filtering ==========

class FeedFilterSet(django_filters.FilterSet):
    """Filters the feed down to links whose description or url contains the needle."""
    filter_needle = django_filters.CharFilter(method='filter_description_or_url')

    class Meta:
        model = LinkModel
        fields = []

    def filter_description_or_url(self, queryset, name, value):
        # case sensitivity is whatever the database's LIKE gives us
        return queryset.filter(Q(description__contains=value) | Q(url__contains=value))


# ========== LinkStore ==========

class LinkStore(object):
    """Data access for links and comments, on top of the Django ORM.

    Resolvers only ever talk to the store they find on the request context, so tests can hand
    them something else.
    """

    def find_links(self, filter_needle=None, skip=0, take=None):
        qs = LinkModel.objects.all()
        if filter_needle:
            qs = FeedFilterSet(data={'filter_needle': filter_needle}, queryset=qs).qs
        qs = qs.order_by('id')
        if take is None:
            return list(qs[skip:])
        return list(qs[skip:skip + take])

    def create_link(self, url, description):
        link = LinkModel.objects.create(url=url, description=description)
        logger.debug('created link %s', link.pk)
        return link

    def find_comment(self, comment_id):
        return CommentModel.objects.filter(pk=comment_id).first()

    def find_comments(self, link_id=None):
        qs = CommentModel.objects.all()
        if link_id is not None:
            qs = qs.filter(link_id=link_id)
        return list(qs.order_by('id'))

    def create_comment(self, link_id, body):
        """Insert a comment, raising ForeignKeyViolation if `link_id` names no link.

        Foreign keys are created DEFERRABLE INITIALLY DEFERRED, so the database would otherwise
        only complain at commit time, well after we've returned the new comment. Checking the
        table inside a savepoint gets the error now and rolls the row back.
        """
        db = router.db_for_write(CommentModel)
        table = CommentModel._meta.db_table
        with transaction.atomic(using=db):
            comment = CommentModel.objects.using(db).create(link_id=link_id, body=body)
            try:
                connections[db].check_constraints(table_names=[table])
            except IntegrityError as e:
                logger.info('rejected comment on missing link %s', link_id)
                raise ForeignKeyViolation(table, link_id) from e
        logger.debug('created comment %s on link %s', comment.pk, link_id)
        return comment
