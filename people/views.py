# people/views.py
"""
Directory views. Mutations go through people.commands.
"""

from django.db.models import Q
from django.http import Http404
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.authz import resolve_actor, require
from .commands import PERSON_MODELS, create_person, update_person, create_pack, assign_pack
from .models import Pack, Student, StudentPack
from .serializers import (
    StudentSerializer,
    MentorSerializer,
    ProfessorSerializer,
    PersonInputSerializer,
    PersonUpdateSerializer,
    PackSerializer,
    PackCreateSerializer,
    StudentPackSerializer,
    AssignPackSerializer,
)

OUTPUT_SERIALIZERS = {
    "student": StudentSerializer,
    "mentor": MentorSerializer,
    "professor": ProfessorSerializer,
}


class PersonListCreateView(APIView):
    """
    GET /api/people/<kind>s/ -> list (?active=true to filter)
    POST /api/people/<kind>s/ -> create
    """
    permission_classes = [IsAuthenticated]
    kind = None

    def get(self, request):
        actor = resolve_actor(request)
        require(actor, "people.view")

        qs = PERSON_MODELS[self.kind].objects.filter(company=actor.company)
        if request.query_params.get("active", "").lower() == "true":
            qs = qs.filter(is_active=True)
        search = request.query_params.get("search")
        if search:
            qs = qs.filter(Q(last_name__icontains=search) | Q(first_name__icontains=search))
        return Response(OUTPUT_SERIALIZERS[self.kind](qs, many=True).data)

    def post(self, request):
        actor = resolve_actor(request)

        input_serializer = PersonInputSerializer(data=request.data)
        input_serializer.is_valid(raise_exception=True)

        result = create_person(actor, self.kind, **input_serializer.validated_data)
        if not result.success:
            return Response({"detail": result.error}, status=status.HTTP_400_BAD_REQUEST)
        return Response(OUTPUT_SERIALIZERS[self.kind](result.data).data, status=status.HTTP_201_CREATED)


class PersonDetailView(APIView):
    permission_classes = [IsAuthenticated]
    kind = None

    def get(self, request, pk):
        actor = resolve_actor(request)
        require(actor, "people.view")

        person = PERSON_MODELS[self.kind].objects.filter(company=actor.company, pk=pk).first()
        if not person:
            raise Http404
        return Response(OUTPUT_SERIALIZERS[self.kind](person).data)

    def patch(self, request, pk):
        actor = resolve_actor(request)

        input_serializer = PersonUpdateSerializer(data=request.data)
        input_serializer.is_valid(raise_exception=True)

        result = update_person(actor, self.kind, pk, **input_serializer.validated_data)
        if not result.success:
            return Response({"detail": result.error}, status=status.HTTP_400_BAD_REQUEST)
        return Response(OUTPUT_SERIALIZERS[self.kind](result.data).data)


class PackListCreateView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        actor = resolve_actor(request)
        require(actor, "people.view")
        packs = Pack.objects.filter(company=actor.company)
        return Response(PackSerializer(packs, many=True).data)

    def post(self, request):
        actor = resolve_actor(request)

        input_serializer = PackCreateSerializer(data=request.data)
        input_serializer.is_valid(raise_exception=True)

        result = create_pack(actor, **input_serializer.validated_data)
        if not result.success:
            return Response({"detail": result.error}, status=status.HTTP_400_BAD_REQUEST)
        return Response(PackSerializer(result.data).data, status=status.HTTP_201_CREATED)


class StudentPackListCreateView(APIView):
    """
    GET /api/people/students/<pk>/packs/ -> packs bought by the student
    POST /api/people/students/<pk>/packs/ -> assign a pack
    """
    permission_classes = [IsAuthenticated]

    def get(self, request, pk):
        actor = resolve_actor(request)
        require(actor, "people.view")

        if not Student.objects.filter(company=actor.company, pk=pk).exists():
            raise Http404
        packs = StudentPack.objects.filter(
            company=actor.company, student_id=pk,
        ).select_related("pack")
        return Response(StudentPackSerializer(packs, many=True).data)

    def post(self, request, pk):
        actor = resolve_actor(request)

        input_serializer = AssignPackSerializer(data=request.data)
        input_serializer.is_valid(raise_exception=True)

        result = assign_pack(actor, pk, **input_serializer.validated_data)
        if not result.success:
            return Response({"detail": result.error}, status=status.HTTP_400_BAD_REQUEST)
        return Response(StudentPackSerializer(result.data).data, status=status.HTTP_201_CREATED)
