# accounting/api/views/journal_entries.py

"""
PATH: accounting/api/views/journal_entries.py

JOURNAL ENTRY API

GET    /api/accounting/journal-entries/                      list (?status, ?source_type, ?start, ?end, ?limit)
POST   /api/accounting/journal-entries/                      create draft ("post": true creates and posts)
GET    /api/accounting/journal-entries/{id}/                 detail with lines (any status)
DELETE /api/accounting/journal-entries/{id}/                 delete a draft
POST   /api/accounting/journal-entries/{id}/post/            Draft -> Posted
POST   /api/accounting/journal-entries/{id}/void/            Posted -> Void (reason required)
POST   /api/accounting/journal-entries/{id}/lines/           add a line to a draft
DELETE /api/accounting/journal-entries/{id}/lines/{line}/    remove a line from a draft

Security:
- view_journalentry for reads
- add_journalentry to create (posting in the same call also needs change_journalentry)
- change_journalentry to post / void / edit lines
- delete_journalentry to delete drafts
"""

from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.generics import GenericAPIView
from rest_framework.response import Response

from accounting.api.base import LedgerAPIMixin
from accounting.api.params import choice_param, epoch_ms_param, int_param
from accounting.api.serializers.journal_entries import (
    JournalEntryCreateSerializer,
    JournalEntryLineSerializer,
    JournalEntryListSerializer,
    JournalEntrySerializer,
    JournalLineInputSerializer,
    VoidEntrySerializer,
)
from accounting.models.journal import JournalEntry
from accounting.services import journal_entry_service

VIEW_PERM = "accounting.view_journalentry"
CHANGE_PERM = "accounting.change_journalentry"

DEFAULT_LIST_LIMIT = 100


def _detail(entry_id):
    return JournalEntrySerializer(journal_entry_service.get_entry(entry_id)).data


class JournalEntryListCreateView(LedgerAPIMixin, GenericAPIView):
    serializer_class = JournalEntryCreateSerializer

    @extend_schema(
        tags=["accounting"],
        parameters=[
            OpenApiParameter(name="status", type=str, required=False, description="Draft | Posted | Void"),
            OpenApiParameter(name="source_type", type=str, required=False),
            OpenApiParameter(name="start", type=int, required=False, description="Epoch ms (inclusive)"),
            OpenApiParameter(name="end", type=int, required=False, description="Epoch ms (inclusive)"),
            OpenApiParameter(name="limit", type=int, required=False),
        ],
        responses=JournalEntryListSerializer(many=True),
    )
    def get(self, request, *args, **kwargs):
        self.require_perm(request, VIEW_PERM, "You do not have permission to view journal entries.")

        entries = journal_entry_service.list_entries(
            status=choice_param(request, "status", JournalEntry.STATUSES),
            source_type=choice_param(request, "source_type", JournalEntry.SOURCE_TYPES),
            start=epoch_ms_param(request, "start"),
            end=epoch_ms_param(request, "end"),
            limit=int_param(request, "limit", default=DEFAULT_LIST_LIMIT, minimum=1),
        )
        return Response(JournalEntryListSerializer(entries, many=True).data, status=status.HTTP_200_OK)

    @extend_schema(
        tags=["accounting"],
        request=JournalEntryCreateSerializer,
        responses={201: JournalEntrySerializer},
    )
    def post(self, request, *args, **kwargs):
        self.require_perm(
            request, "accounting.add_journalentry", "You do not have permission to create journal entries."
        )

        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)

        post_now = data.pop("post", False)
        if post_now:
            self.require_perm(request, CHANGE_PERM, "You do not have permission to post journal entries.")

        data["lines"] = [dict(line) for line in data["lines"]]
        data["actor"] = self.actor(request)

        if post_now:
            entry = journal_entry_service.create_and_post(**data)
        else:
            entry = journal_entry_service.create_draft(**data)

        return Response(_detail(entry.id), status=status.HTTP_201_CREATED)


class JournalEntryDetailView(LedgerAPIMixin, GenericAPIView):
    @extend_schema(tags=["accounting"], responses=JournalEntrySerializer)
    def get(self, request, pk, *args, **kwargs):
        self.require_perm(request, VIEW_PERM, "You do not have permission to view journal entries.")
        return Response(_detail(pk), status=status.HTTP_200_OK)

    @extend_schema(tags=["accounting"], responses={204: None})
    def delete(self, request, pk, *args, **kwargs):
        self.require_perm(
            request, "accounting.delete_journalentry", "You do not have permission to delete journal entries."
        )
        journal_entry_service.delete_draft(pk, actor=self.actor(request))
        return Response(status=status.HTTP_204_NO_CONTENT)


class JournalEntryPostView(LedgerAPIMixin, GenericAPIView):
    @extend_schema(tags=["accounting"], request=None, responses=JournalEntrySerializer)
    def post(self, request, pk, *args, **kwargs):
        self.require_perm(request, CHANGE_PERM, "You do not have permission to post journal entries.")
        entry = journal_entry_service.post(pk, actor=self.actor(request))
        return Response(_detail(entry.id), status=status.HTTP_200_OK)


class JournalEntryVoidView(LedgerAPIMixin, GenericAPIView):
    serializer_class = VoidEntrySerializer

    @extend_schema(tags=["accounting"], request=VoidEntrySerializer, responses=JournalEntrySerializer)
    def post(self, request, pk, *args, **kwargs):
        self.require_perm(request, CHANGE_PERM, "You do not have permission to void journal entries.")

        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        entry = journal_entry_service.void(
            pk,
            reason=serializer.validated_data["reason"],
            actor=self.actor(request),
        )
        return Response(_detail(entry.id), status=status.HTTP_200_OK)


class JournalEntryLineCreateView(LedgerAPIMixin, GenericAPIView):
    serializer_class = JournalLineInputSerializer

    @extend_schema(
        tags=["accounting"],
        request=JournalLineInputSerializer,
        responses={201: JournalEntryLineSerializer},
    )
    def post(self, request, pk, *args, **kwargs):
        self.require_perm(request, CHANGE_PERM, "You do not have permission to edit journal entries.")

        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        line = journal_entry_service.add_line(
            pk,
            line=dict(serializer.validated_data),
            actor=self.actor(request),
        )
        return Response(JournalEntryLineSerializer(line).data, status=status.HTTP_201_CREATED)


class JournalEntryLineDeleteView(LedgerAPIMixin, GenericAPIView):
    @extend_schema(tags=["accounting"], responses={204: None})
    def delete(self, request, pk, line_id, *args, **kwargs):
        self.require_perm(request, CHANGE_PERM, "You do not have permission to edit journal entries.")
        journal_entry_service.remove_line(pk, line_id, actor=self.actor(request))
        return Response(status=status.HTTP_204_NO_CONTENT)
