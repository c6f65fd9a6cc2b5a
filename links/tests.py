# hackernews-comments-api -- links/tests.py
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

import json

from django.db import OperationalError
from django.test import TestCase

import graphene

from hackernews.context import RequestContext
from hackernews.schema import Mutation, Query
from hackernews.utils import format_graphql_errors
from links.errors import LinkReferenceError, ValidationError
from links.models import CommentModel, LinkModel
from links.store import ForeignKeyViolation, LinkStore
from links.validators import (
    MAX_ID, apply_range_constraints, apply_skip_constraints, parse_int_safe)


# ========== utility functions ==========

def execute(query, variables=None, store=None):
    schema = graphene.Schema(query=Query, mutation=Mutation)
    return schema.execute(query, variable_values=variables,
                          context_value=RequestContext(store=store))


def type_ref(t):
    """Render an introspected type reference the way SDL writes it, e.g. '[Link!]!'."""
    if t['kind'] == 'NON_NULL':
        return type_ref(t['ofType']) + '!'
    if t['kind'] == 'LIST':
        return '[' + type_ref(t['ofType']) + ']'
    return t['name']


def create_feed_test_data():
    """Create three links, only the last two of which contain 'foo' (one in its description, one
    in its url)."""
    return [
        LinkModel.objects.create(description='no match', url='http://a.com'),
        LinkModel.objects.create(description='contains foo', url='http://b.com'),
        LinkModel.objects.create(description='also no match', url='http://foo.com'),
    ]


# ========== GraphQL schema general tests ==========

class RootTests(TestCase):
    def test_root_query(self):
        """Make sure the root query is 'Query' and the root mutation is 'Mutation'."""
        query = '''
          query RootQueryQuery {
            __schema {
              queryType { name }
              mutationType { name }
            }
          }
        '''
        expected = {
            '__schema': {
                'queryType': {'name': 'Query'},
                'mutationType': {'name': 'Mutation'},
            }
        }
        result = execute(query)
        self.assertIsNone(result.errors, msg=format_graphql_errors(result.errors))
        self.assertEqual(result.data, expected, msg='\n'+repr(expected)+'\n'+repr(result.data))

    def test_link_schema(self):
        """Check the Link type has exactly the fields clients expect, with the right nullability."""
        query = '''
          query LinkSchemaTest {
            __type(name: "Link") {
              fields {
                name
                type {
                  kind
                  ofType { name kind }
                }
              }
            }
          }
        '''
        expected = {
            'id': ('NON_NULL', 'ID'),
            'description': ('NON_NULL', 'String'),
            'url': ('NON_NULL', 'String'),
            'comments': ('NON_NULL', None),  # [Comment!]!
        }
        result = execute(query)
        self.assertIsNone(result.errors, msg=format_graphql_errors(result.errors))
        fields = {
            f['name']: (f['type']['kind'], f['type']['ofType']['name'])
            for f in result.data['__type']['fields']
        }
        self.assertEqual(fields, expected)

    def test_comment_schema(self):
        query = '''
          query CommentSchemaTest {
            __type(name: "Comment") {
              fields { name }
            }
          }
        '''
        result = execute(query)
        self.assertIsNone(result.errors, msg=format_graphql_errors(result.errors))
        names = [f['name'] for f in result.data['__type']['fields']]
        self.assertEqual(names, ['id', 'body'])

    def test_root_fields(self):
        """The root types expose the camel-cased field and argument names, with the right types.
        Arguments are passed by name, so their order doesn't matter."""
        query = '''
          query RootFieldsTest($name: String!) {
            __type(name: $name) {
              fields {
                name
                args { name type { ...TypeRef } }
                type { ...TypeRef }
              }
            }
          }
          fragment TypeRef on __Type {
            kind name ofType { kind name ofType { kind name ofType { kind name } } }
          }
        '''
        expected = {
            'Query': {
                'info': ('String!', {}),
                'feed': ('[Link!]!', {'filterNeedle': 'String', 'skip': 'Int', 'take': 'Int'}),
                'comment': ('Comment', {'id': 'ID!'}),
                'allComments': ('[Comment!]!', {}),
            },
            'Mutation': {
                'postLink': ('Link!', {'url': 'String!', 'description': 'String!'}),
                'postCommentOnLink': ('Comment!', {'linkId': 'ID!', 'body': 'String!'}),
            },
        }
        for type_name, fields in expected.items():
            result = execute(query, {'name': type_name})
            self.assertIsNone(result.errors, msg=format_graphql_errors(result.errors))
            actual = {
                f['name']: (type_ref(f['type']), {a['name']: type_ref(a['type']) for a in f['args']})
                for f in result.data['__type']['fields']
            }
            self.assertEqual(actual, fields, msg='\n'+repr(fields)+'\n'+repr(actual))


# ========== validator tests ==========

class ParseIntSafeTests(TestCase):
    def test_digits(self):
        self.assertEqual(parse_int_safe('0'), 0)
        self.assertEqual(parse_int_safe('42'), 42)
        self.assertEqual(parse_int_safe('007'), 7)

    def test_not_digits(self):
        for value in ('', '-1', '+1', ' 1', '1 ', '1\n', '1.0', '1e3', 'abc', '0x10', '١٢'):
            self.assertIsNone(parse_int_safe(value), msg=repr(value))

    def test_not_a_string(self):
        self.assertIsNone(parse_int_safe(None))
        self.assertIsNone(parse_int_safe(12))


class ConstraintTests(TestCase):
    def test_take_in_range(self):
        for value in (1, 30, 50):
            self.assertEqual(apply_range_constraints('take', value, 1, 50), value)

    def test_take_out_of_range(self):
        for value in (-1, 0, 51):
            with self.assertRaises(ValidationError) as cm:
                apply_range_constraints('take', value, 1, 50)
            self.assertEqual(
                str(cm.exception),
                "'take' argument value '{}' is outside the valid range of '1' to '50'.".format(value))

    def test_range_names_the_argument(self):
        with self.assertRaises(ValidationError) as cm:
            apply_range_constraints('first', 11, 1, 10)
        self.assertEqual(str(cm.exception),
                         "'first' argument value '11' is outside the valid range of '1' to '10'.")

    def test_skip(self):
        self.assertEqual(apply_skip_constraints(0), 0)
        self.assertEqual(apply_skip_constraints(10), 10)
        with self.assertRaises(ValidationError):
            apply_skip_constraints(-1)


# ========== info query tests ==========

class InfoTests(TestCase):
    def test_info(self):
        result = execute('query { info }')
        self.assertIsNone(result.errors, msg=format_graphql_errors(result.errors))
        self.assertEqual(result.data, {'info': 'This is the API of a Hackernews Clone'})


# ========== feed query tests ==========

class FeedTests(TestCase):
    def setUp(self):
        self.links = create_feed_test_data()
        self.query = '''
          query FeedTest($filterNeedle: String, $skip: Int, $take: Int) {
            feed(filterNeedle: $filterNeedle, skip: $skip, take: $take) {
              id
              description
              url
            }
          }
        '''

    def feed_urls(self, **variables):
        result = execute(self.query, variables)
        self.assertIsNone(result.errors, msg=format_graphql_errors(result.errors))
        return [link['url'] for link in result.data['feed']]

    def test_feed(self):
        """with no filter, every link comes back, in insertion order"""
        result = execute(self.query)
        self.assertIsNone(result.errors, msg=format_graphql_errors(result.errors))
        expected = {
            'feed': [
                {'id': str(link.pk), 'description': link.description, 'url': link.url}
                for link in self.links
            ]
        }
        self.assertEqual(result.data, expected, msg='\n'+repr(expected)+'\n'+repr(result.data))

    def test_feed_filter(self):
        """filterNeedle matches on description or url"""
        self.assertEqual(self.feed_urls(filterNeedle='foo'), ['http://b.com', 'http://foo.com'])
        self.assertEqual(self.feed_urls(filterNeedle='b.com'), ['http://b.com'])
        self.assertEqual(self.feed_urls(filterNeedle='nothing like it'), [])

    def test_feed_filter_no_duplicates(self):
        """a link matching on both description and url is only returned once"""
        LinkModel.objects.create(description='foo everywhere', url='http://foo.org')
        self.assertEqual(self.feed_urls(filterNeedle='foo'),
                         ['http://b.com', 'http://foo.com', 'http://foo.org'])

    def test_feed_filter_example(self):
        """only the link containing the needle is returned"""
        LinkModel.objects.all().delete()
        LinkModel.objects.create(description='no match', url='http://a.com')
        link = LinkModel.objects.create(description='contains foo', url='http://b.com')
        result = execute('query { feed(filterNeedle: "foo") { id } }')
        self.assertIsNone(result.errors, msg=format_graphql_errors(result.errors))
        self.assertEqual(result.data, {'feed': [{'id': str(link.pk)}]})

    def test_feed_empty_filter(self):
        """an empty filterNeedle is the same as none"""
        self.assertEqual(len(self.feed_urls(filterNeedle='')), 3)

    def test_feed_pagination(self):
        self.assertEqual(self.feed_urls(take=2), ['http://a.com', 'http://b.com'])
        self.assertEqual(self.feed_urls(skip=1, take=1), ['http://b.com'])
        self.assertEqual(self.feed_urls(skip=2), ['http://foo.com'])
        self.assertEqual(self.feed_urls(skip=5), [])

    def test_feed_pagination_with_filter(self):
        self.assertEqual(self.feed_urls(filterNeedle='foo', skip=1, take=1), ['http://foo.com'])

    def test_feed_default_take(self):
        """without take, at most 30 links are returned"""
        LinkModel.objects.bulk_create([
            LinkModel(description='Link {}'.format(i), url='http://{}.example.com'.format(i))
            for i in range(40)
        ])
        self.assertEqual(len(self.feed_urls()), 30)
        self.assertEqual(len(self.feed_urls(take=50)), 43)

    def test_feed_take_out_of_range(self):
        for take in (0, 51, -3):
            result = execute(self.query, {'take': take})
            self.assertIsNotNone(result.errors, msg='feed should have failed: take={}'.format(take))
            self.assertEqual(
                result.errors[0].message,
                "'take' argument value '{}' is outside the valid range of '1' to '50'.".format(take))
            self.assertIsInstance(result.errors[0].original_error, ValidationError)
            self.assertIsNone(result.data)  # feed is non-null, so the whole result is null

    def test_feed_negative_skip(self):
        result = execute(self.query, {'skip': -1})
        self.assertIsNotNone(result.errors, msg='feed should have failed: negative skip')
        self.assertIsInstance(result.errors[0].original_error, ValidationError)
        self.assertIn("'skip' argument value '-1'", result.errors[0].message)


# ========== Link.comments tests ==========

class LinkCommentsTests(TestCase):
    def test_link_comments(self):
        """each link gets exactly its own comments, in insertion order"""
        link1, link2, link3 = create_feed_test_data()
        c1 = CommentModel.objects.create(link=link1, body='one')
        c2 = CommentModel.objects.create(link=link2, body='two')
        c3 = CommentModel.objects.create(link=link1, body='three')
        query = '''
          query {
            feed {
              url
              comments { id body }
            }
          }
        '''
        expected = {
            'feed': [
                {
                    'url': link1.url,
                    'comments': [
                        {'id': str(c1.pk), 'body': 'one'},
                        {'id': str(c3.pk), 'body': 'three'},
                    ],
                },
                {
                    'url': link2.url,
                    'comments': [{'id': str(c2.pk), 'body': 'two'}],
                },
                {
                    'url': link3.url,
                    'comments': [],
                },
            ]
        }
        result = execute(query)
        self.assertIsNone(result.errors, msg=format_graphql_errors(result.errors))
        self.assertEqual(result.data, expected, msg='\n'+repr(expected)+'\n'+repr(result.data))


# ========== comment / allComments query tests ==========

class CommentQueryTests(TestCase):
    def setUp(self):
        self.link = LinkModel.objects.create(description='Description', url='http://a.com')
        self.comment = CommentModel.objects.create(link=self.link, body='Hello')
        self.query = '''
          query CommentTest($id: ID!) {
            comment(id: $id) { id body }
          }
        '''

    def test_comment(self):
        result = execute(self.query, {'id': str(self.comment.pk)})
        self.assertIsNone(result.errors, msg=format_graphql_errors(result.errors))
        expected = {'comment': {'id': str(self.comment.pk), 'body': 'Hello'}}
        self.assertEqual(result.data, expected, msg='\n'+repr(expected)+'\n'+repr(result.data))

    def test_comment_not_found(self):
        """a missing comment is null, not an error"""
        result = execute(self.query, {'id': '999'})
        self.assertIsNone(result.errors, msg=format_graphql_errors(result.errors))
        self.assertEqual(result.data, {'comment': None})

    def test_comment_invalid_id(self):
        result = execute(self.query, {'id': 'abc'})
        self.assertIsNotNone(result.errors, msg='comment should have failed: invalid id')
        self.assertEqual(result.errors[0].message, "Invalid comment id 'abc'.")
        self.assertIsInstance(result.errors[0].original_error, ValidationError)
        self.assertEqual(result.data, {'comment': None})

    def test_comment_huge_id(self):
        result = execute(self.query, {'id': '9999999999999999999999999'})
        self.assertIsNone(result.errors, msg=format_graphql_errors(result.errors))
        self.assertEqual(result.data, {'comment': None})

    def test_all_comments(self):
        other = LinkModel.objects.create(description='Other', url='http://b.com')
        second = CommentModel.objects.create(link=other, body='World')
        result = execute('query { allComments { id body } }')
        self.assertIsNone(result.errors, msg=format_graphql_errors(result.errors))
        expected = {
            'allComments': [
                {'id': str(self.comment.pk), 'body': 'Hello'},
                {'id': str(second.pk), 'body': 'World'},
            ]
        }
        self.assertEqual(result.data, expected, msg='\n'+repr(expected)+'\n'+repr(result.data))

    def test_all_comments_empty(self):
        CommentModel.objects.all().delete()
        result = execute('query { allComments { id } }')
        self.assertIsNone(result.errors, msg=format_graphql_errors(result.errors))
        self.assertEqual(result.data, {'allComments': []})


# ========== postLink mutation tests ==========

class PostLinkTests(TestCase):
    def test_post_link(self):
        query = '''
          mutation PostLinkMutation($url: String!, $description: String!) {
            postLink(url: $url, description: $description) {
              id
              url
              description
              comments { id }
            }
          }
        '''
        variables = {'url': 'http://example.com', 'description': 'Description'}
        result = execute(query, variables)
        self.assertIsNone(result.errors, msg=format_graphql_errors(result.errors))
        # check that the link was created properly
        link = LinkModel.objects.get()
        expected = {
            'postLink': {
                'id': str(link.pk),
                'url': 'http://example.com',
                'description': 'Description',
                'comments': [],
            }
        }
        self.assertEqual(result.data, expected, msg='\n'+repr(expected)+'\n'+repr(result.data))
        self.assertEqual(link.url, 'http://example.com')
        self.assertEqual(link.description, 'Description')

    def test_post_link_missing_argument(self):
        """url and description are both required"""
        result = execute('mutation { postLink(url: "http://example.com") { id } }')
        self.assertIsNotNone(result.errors, msg='postLink should have failed: no description')
        self.assertFalse(LinkModel.objects.exists())


# ========== postCommentOnLink mutation tests ==========

class BrokenStore(LinkStore):
    """A store whose database has gone away."""
    def create_comment(self, link_id, body):
        raise OperationalError('database is locked')


class PostCommentOnLinkTests(TestCase):
    def setUp(self):
        self.link = LinkModel.objects.create(description='Description', url='http://a.com')
        self.query = '''
          mutation PostCommentMutation($linkId: ID!, $body: String!) {
            postCommentOnLink(linkId: $linkId, body: $body) {
              id
              body
            }
          }
        '''

    def test_post_comment(self):
        result = execute(self.query, {'linkId': str(self.link.pk), 'body': 'First!'})
        self.assertIsNone(result.errors, msg=format_graphql_errors(result.errors))
        # exactly one comment, on the right link
        comment = CommentModel.objects.get()
        self.assertEqual(comment.link_id, self.link.pk)
        self.assertEqual(comment.body, 'First!')
        expected = {'postCommentOnLink': {'id': str(comment.pk), 'body': 'First!'}}
        self.assertEqual(result.data, expected, msg='\n'+repr(expected)+'\n'+repr(result.data))

    def test_post_comment_shows_on_link(self):
        result = execute(self.query, {'linkId': str(self.link.pk), 'body': 'First!'})
        self.assertIsNone(result.errors, msg=format_graphql_errors(result.errors))
        result = execute('query { feed { comments { body } } }')
        self.assertIsNone(result.errors, msg=format_graphql_errors(result.errors))
        self.assertEqual(result.data, {'feed': [{'comments': [{'body': 'First!'}]}]})

    def test_post_comment_non_existing_link(self):
        """a well-formed id with no link behind it is refused, and nothing is stored"""
        result = execute(self.query, {'linkId': '999', 'body': 'hi'})
        self.assertIsNotNone(result.errors,
                             msg='postCommentOnLink should have failed: no link 999')
        self.assertEqual(result.errors[0].message,
                         "Cannot post comment on non-existing link with id '999'.")
        self.assertIsInstance(result.errors[0].original_error, LinkReferenceError)
        self.assertIsNone(result.data)
        self.assertFalse(CommentModel.objects.exists())

    def test_post_comment_invalid_link_id(self):
        """ids that aren't plain decimal integers get the same error as missing links"""
        for link_id in ('abc', '-1', ' 1', '1.5', ''):
            result = execute(self.query, {'linkId': link_id, 'body': 'hi'})
            self.assertIsNotNone(result.errors,
                                 msg='postCommentOnLink should have failed: {!r}'.format(link_id))
            self.assertEqual(
                result.errors[0].message,
                "Cannot post comment on non-existing link with id '{}'.".format(link_id))
            self.assertIsInstance(result.errors[0].original_error, LinkReferenceError)
        self.assertFalse(CommentModel.objects.exists())

    def test_post_comment_huge_link_id(self):
        """an all-digit id too big for the database is just another missing link"""
        for link_id in (str(MAX_ID + 1), '9999999999999999999999999'):
            result = execute(self.query, {'linkId': link_id, 'body': 'hi'})
            self.assertIsNotNone(result.errors,
                                 msg='postCommentOnLink should have failed: {!r}'.format(link_id))
            self.assertEqual(
                result.errors[0].message,
                "Cannot post comment on non-existing link with id '{}'.".format(link_id))
            self.assertIsInstance(result.errors[0].original_error, LinkReferenceError)
        self.assertFalse(CommentModel.objects.exists())

    def test_post_comment_store_error(self):
        """errors other than a missing link come through untouched"""
        result = execute(self.query, {'linkId': str(self.link.pk), 'body': 'hi'},
                         store=BrokenStore())
        self.assertIsNotNone(result.errors, msg='postCommentOnLink should have failed')
        self.assertIsInstance(result.errors[0].original_error, OperationalError)
        self.assertEqual(result.errors[0].message, 'database is locked')


# ========== LinkStore tests ==========

class LinkStoreTests(TestCase):
    def setUp(self):
        self.store = LinkStore()

    def test_create_comment(self):
        link = self.store.create_link(url='http://a.com', description='Description')
        comment = self.store.create_comment(link_id=link.pk, body='Hello')
        self.assertIsNotNone(comment.pk)
        self.assertEqual(self.store.find_comments(link_id=link.pk), [comment])
        self.assertEqual(self.store.find_comment(comment.pk), comment)

    def test_create_comment_foreign_key_violation(self):
        with self.assertRaises(ForeignKeyViolation) as cm:
            self.store.create_comment(link_id=12345, body='Hello')
        self.assertEqual(cm.exception.link_id, 12345)
        self.assertFalse(CommentModel.objects.exists())

    def test_find_comment_missing(self):
        self.assertIsNone(self.store.find_comment(1))

    def test_find_links(self):
        links = create_feed_test_data()
        self.assertEqual(self.store.find_links(), links)
        self.assertEqual(self.store.find_links(filter_needle='foo'), links[1:])
        self.assertEqual(self.store.find_links(skip=1, take=1), links[1:2])


# ========== HTTP endpoint tests ==========

class GraphQLViewTests(TestCase):
    def post(self, query, variables=None):
        body = {'query': query}
        if variables is not None:
            body['variables'] = variables
        return self.client.post('/graphql/', json.dumps(body), content_type='application/json')

    def test_query(self):
        response = self.post('query { info }')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {'data': {'info': 'This is the API of a Hackernews Clone'}})

    def test_mutation_error(self):
        response = self.post('''
          mutation {
            postCommentOnLink(linkId: "999", body: "hi") { id }
          }
        ''')
        errors = response.json()['errors']
        self.assertEqual(errors[0]['message'],
                         "Cannot post comment on non-existing link with id '999'.")
        self.assertFalse(CommentModel.objects.exists())
