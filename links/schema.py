# hackernews-comments-api -- links/schema.py
#
# Copyright © 2017 Sean Bolton.
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

import graphene
from graphene_django import DjangoObjectType

from links.errors import LinkReferenceError, ValidationError
from links.models import CommentModel, LinkModel
from links.store import ForeignKeyViolation
from links.validators import (
    MAX_ID, apply_range_constraints, apply_skip_constraints, parse_int_safe)


logger = logging.getLogger(__name__)

FEED_TAKE_DEFAULT = 30
FEED_TAKE_MIN = 1
FEED_TAKE_MAX = 50

INFO = 'This is the API of a Hackernews Clone'


# ========== Comment ==========

class Comment(DjangoObjectType):
    class Meta:
        model = CommentModel
        fields = ('id', 'body')


class PostCommentOnLink(graphene.Mutation):
    # mutation {
    #   postCommentOnLink(linkId: "1", body: "First!") {
    #     id
    #     body
    #   }
    # }

    class Arguments:
        link_id = graphene.ID(required=True)
        body = graphene.String(required=True)

    Output = Comment

    def mutate(root, info, link_id, body):
        # Both the unparseable id and the missing row end up as the same error, so clients can't
        # tell (and don't need to care) which one it was. Ids past MAX_ID can't name a row, and
        # the database would reject them with an overflow rather than a foreign key error.
        parsed_id = parse_int_safe(link_id)
        if parsed_id is None or parsed_id > MAX_ID:
            raise LinkReferenceError(link_id)
        try:
            return info.context.store.create_comment(link_id=parsed_id, body=body)
        except ForeignKeyViolation:
            raise LinkReferenceError(link_id)


# ========== Link ==========

class Link(DjangoObjectType):
    class Meta:
        model = LinkModel
        fields = ('id', 'description', 'url')

    comments = graphene.List(graphene.NonNull(Comment), required=True)

    def resolve_comments(parent, info):
        return info.context.store.find_comments(link_id=parent.pk)


class PostLink(graphene.Mutation):
    # mutation {
    #   postLink(url: "http://example.com", description: "An example") {
    #     id
    #   }
    # }

    class Arguments:
        url = graphene.String(required=True)
        description = graphene.String(required=True)

    Output = Link

    def mutate(root, info, url, description):
        return info.context.store.create_link(url=url, description=description)


# ========== schema structure ==========

class Query(object):
    info = graphene.String(required=True)
    feed = graphene.List(
        graphene.NonNull(Link),
        required=True,
        filter_needle=graphene.String(),
        skip=graphene.Int(),
        take=graphene.Int(),
    )
    comment = graphene.Field(Comment, id=graphene.ID(required=True))
    all_comments = graphene.List(graphene.NonNull(Comment), required=True)

    def resolve_info(root, info):
        return INFO

    def resolve_feed(root, info, filter_needle=None, skip=None, take=None):
        try:
            take = apply_range_constraints(
                'take', FEED_TAKE_DEFAULT if take is None else take, FEED_TAKE_MIN, FEED_TAKE_MAX)
            skip = apply_skip_constraints(0 if skip is None else skip)
        except ValidationError as e:
            logger.info('rejected feed arguments: %s', e)
            raise
        return info.context.store.find_links(filter_needle=filter_needle, skip=skip, take=take)

    def resolve_comment(root, info, id):
        comment_id = parse_int_safe(id)
        if comment_id is None:
            logger.info('rejected comment id %r', id)
            raise ValidationError("Invalid comment id '{}'.".format(id))
        if comment_id > MAX_ID:
            return None
        return info.context.store.find_comment(comment_id)

    def resolve_all_comments(root, info):
        return info.context.store.find_comments()


class Mutation(object):
    post_link = PostLink.Field(required=True)
    post_comment_on_link = PostCommentOnLink.Field(required=True)
