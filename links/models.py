from django.db import models


class LinkModel(models.Model):
    description = models.TextField()
    url = models.TextField()

    class Meta:
        ordering = ['id']


class CommentModel(models.Model):
    body = models.TextField()
    link = models.ForeignKey('links.LinkModel', related_name='comments', on_delete=models.CASCADE)

    class Meta:
        ordering = ['id']
