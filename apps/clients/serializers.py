from rest_framework import serializers

from apps.accounts.models import User
from apps.accounts.serializers import UserMinimalSerializer
from apps.documents.serializers import CategoryStateSerializer
from .models import OVERDUE, Client, ClientStatus, ClientStep, ClientSubStep, PaymentMode, StepStatus
from .step_templates import FIRST_STEP, LAST_STEP


class ClientSerializer(serializers.ModelSerializer):
    """Client as returned by the API."""

    assigned_to = UserMinimalSerializer(read_only=True)
    created_by = UserMinimalSerializer(read_only=True)

    class Meta:
        model = Client
        fields = [
            'id',
            'name',
            'mobile',
            'address',
            'google_maps_url',
            'comments',
            'status',
            'current_step',
            'assigned_to',
            'created_by',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields


class ClientCreateSerializer(serializers.Serializer):
    """Input for client creation. Assignee defaults to the requester."""

    name = serializers.CharField(max_length=200)
    mobile = serializers.CharField(max_length=20)
    address = serializers.CharField()
    google_maps_url = serializers.URLField(max_length=500, required=False, allow_blank=True)
    comments = serializers.CharField(required=False, allow_blank=True)
    assigned_to = serializers.PrimaryKeyRelatedField(
        queryset=User.objects.filter(is_active=True),
        required=False
    )


class ClientUpdateSerializer(serializers.Serializer):
    """Input for client updates; every field is optional."""

    name = serializers.CharField(max_length=200, required=False)
    mobile = serializers.CharField(max_length=20, required=False)
    address = serializers.CharField(required=False)
    google_maps_url = serializers.URLField(max_length=500, required=False, allow_blank=True)
    comments = serializers.CharField(required=False, allow_blank=True)
    status = serializers.ChoiceField(choices=ClientStatus.choices, required=False)
    assigned_to = serializers.PrimaryKeyRelatedField(
        queryset=User.objects.filter(is_active=True),
        required=False
    )


class ClientFilterSerializer(serializers.Serializer):
    """Query parameters accepted by the client list."""

    status = serializers.ChoiceField(choices=ClientStatus.choices, required=False)
    assigned_to = serializers.UUIDField(required=False)
    current_step = serializers.IntegerField(min_value=FIRST_STEP, max_value=LAST_STEP, required=False)
    name = serializers.CharField(required=False)
    mobile = serializers.CharField(required=False)
    created_at_start = serializers.DateField(required=False)
    created_at_end = serializers.DateField(required=False)

    def validate(self, attrs):
        start = attrs.get('created_at_start')
        end = attrs.get('created_at_end')
        if start and end and start > end:
            raise serializers.ValidationError(
                {'created_at_end': 'End date must not be before start date'}
            )
        return attrs


class StepFilterSerializer(serializers.Serializer):
    """Status filter for steps and sub-steps; accepts the derived overdue state."""

    status = serializers.ChoiceField(
        choices=StepStatus.choices + [(OVERDUE, 'Overdue')],
        required=False
    )


class ClientSubStepSerializer(serializers.ModelSerializer):
    """Sub-step with derived overdue flag."""

    assigned_to = UserMinimalSerializer(read_only=True)
    is_overdue = serializers.BooleanField(read_only=True)

    class Meta:
        model = ClientSubStep
        fields = [
            'id',
            'step',
            'client',
            'name',
            'description',
            'sort_order',
            'is_required',
            'status',
            'is_overdue',
            'assigned_to',
            'due_date',
            'completed_at',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields


class ClientStepSerializer(serializers.ModelSerializer):
    """Workflow step with its sub-steps."""

    assigned_to = UserMinimalSerializer(read_only=True)
    is_overdue = serializers.BooleanField(read_only=True)
    sub_steps = ClientSubStepSerializer(many=True, read_only=True)

    class Meta:
        model = ClientStep
        fields = [
            'id',
            'client',
            'step_number',
            'step_name',
            'description',
            'status',
            'is_overdue',
            'assigned_to',
            'due_date',
            'completed_at',
            'estimated_duration',
            'is_optional',
            'notes',
            'sub_steps',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields


class TrackedItemUpdateSerializer(serializers.Serializer):
    """Fields shared by step and sub-step updates. Overdue is derived, never set."""

    status = serializers.ChoiceField(choices=StepStatus.choices, required=False)
    assigned_to = serializers.PrimaryKeyRelatedField(
        queryset=User.objects.filter(is_active=True),
        required=False,
        allow_null=True
    )
    due_date = serializers.DateField(required=False)


class StepUpdateSerializer(TrackedItemUpdateSerializer):
    notes = serializers.CharField(required=False, allow_blank=True)


class SubStepUpdateSerializer(TrackedItemUpdateSerializer):
    description = serializers.CharField(required=False, allow_blank=True)


class StepTemplateSerializer(serializers.Serializer):
    """Read-only view of a workflow step template."""

    step_number = serializers.IntegerField()
    name = serializers.CharField()
    description = serializers.CharField()
    estimated_duration = serializers.IntegerField()
    is_optional = serializers.BooleanField()
    depends_on = serializers.IntegerField(allow_null=True)
    sub_steps = serializers.SerializerMethodField()

    def get_sub_steps(self, obj):
        return [
            {'name': sub.name, 'sort_order': sub.sort_order, 'description': sub.description}
            for sub in obj.sub_steps
        ]


class ClientStatsSerializer(serializers.Serializer):
    total_clients = serializers.IntegerField()
    active_clients = serializers.IntegerField()
    completed_clients = serializers.IntegerField()
    on_hold_clients = serializers.IntegerField()
    cancelled_clients = serializers.IntegerField()
    clients_by_step = serializers.DictField(child=serializers.IntegerField())
    overdue_steps = serializers.IntegerField()
    completed_steps_this_week = serializers.IntegerField()


# ------------------------------------------
# Step form data
# ------------------------------------------

class PersonalInfoSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=200, allow_blank=True)
    address = serializers.CharField(allow_blank=True)
    google_maps_url = serializers.CharField(max_length=500, allow_blank=True)
    phone1 = serializers.CharField(max_length=20, allow_blank=True)
    phone2 = serializers.CharField(max_length=20, allow_blank=True)
    referral = serializers.CharField(max_length=200, allow_blank=True)
    status = serializers.CharField(max_length=100, allow_blank=True)
    comment = serializers.CharField(allow_blank=True)


class DatesSerializer(serializers.Serializer):
    first_contact_date = serializers.DateField(allow_null=True)
    next_follow_up_date = serializers.DateField(allow_null=True)


class PlantDetailsSerializer(serializers.Serializer):
    summary = serializers.DictField()
    solar_panels = serializers.ListField(child=serializers.DictField())
    invertors = serializers.ListField(child=serializers.DictField())
    other_items = serializers.DictField()


class PricingDetailsSerializer(serializers.Serializer):
    price_quoted = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0)
    price_finalized = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0)
    advance_received = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0)
    quotation_pdf_url = serializers.URLField(max_length=500, allow_blank=True)


class SpecialRequirementsSerializer(serializers.Serializer):
    name_transfer_required = serializers.BooleanField()
    name_transfer_comments = serializers.CharField(allow_blank=True)
    load_enhancement_required = serializers.BooleanField()
    load_enhancement_comments = serializers.CharField(allow_blank=True)
    other_prerequisite_required = serializers.BooleanField()
    other_prerequisite_details = serializers.CharField(allow_blank=True)


class Step1DataSerializer(serializers.Serializer):
    """Client finalization: personal info, plant, pricing (admin only)."""

    personal_info = PersonalInfoSerializer()
    dates = DatesSerializer()
    payment_mode = serializers.ChoiceField(choices=PaymentMode.choices)
    plant_details = PlantDetailsSerializer()
    pricing_details = PricingDetailsSerializer()
    special_requirements = SpecialRequirementsSerializer()


class LoanStatusSerializer(serializers.Serializer):
    loan_registration_done = serializers.BooleanField()
    file_submitted_to_branch = serializers.BooleanField()
    loan_approved_and_signed = serializers.BooleanField()
    loan_disbursed = serializers.BooleanField()


class Step2DataSerializer(serializers.Serializer):
    loan_status = LoanStatusSerializer()
    notes = serializers.CharField(allow_blank=True)


class SiteMeasurementSerializer(serializers.Serializer):
    number_of_legs = serializers.IntegerField(min_value=0)
    leg_dimensions = serializers.ListField(child=serializers.CharField(max_length=100))
    notes = serializers.CharField(allow_blank=True)


class InstallationProgressSerializer(serializers.Serializer):
    material_dispatched_on_site = serializers.BooleanField()
    structure_assembly_done = serializers.BooleanField()
    panel_installed = serializers.BooleanField()
    invertor_connected = serializers.BooleanField()
    dual_sign_net_metering_agreement_done = serializers.BooleanField()
    plant_started = serializers.BooleanField()


class PlantDetailsUpdateSerializer(serializers.Serializer):
    panel_details_updated = serializers.BooleanField()
    invertor_details_updated = serializers.BooleanField()
    last_updated_at = serializers.DateTimeField(allow_null=True)
    notes = serializers.CharField(allow_blank=True)


class Step3DataSerializer(serializers.Serializer):
    site_measurement = SiteMeasurementSerializer()
    installation_progress = InstallationProgressSerializer()
    plant_details_update = PlantDetailsUpdateSerializer()
    notes = serializers.CharField(allow_blank=True)


class FilePreparationSerializer(serializers.Serializer):
    dual_sign_file_prepared = serializers.BooleanField()
    notes = serializers.CharField(allow_blank=True)


class PaymentTrackingSerializer(serializers.Serializer):
    meter_replacement_payment_done = serializers.BooleanField()
    notes = serializers.CharField(allow_blank=True)


class DcrCertificatesSerializer(serializers.Serializer):
    dcr_certificates_generated = serializers.BooleanField()
    certificate_numbers = serializers.ListField(child=serializers.CharField(max_length=100))
    notes = serializers.CharField(allow_blank=True)


class DispatchTrackingSerializer(serializers.Serializer):
    file_sent_to_discom = serializers.BooleanField()
    acknowledgment_received = serializers.BooleanField()
    notes = serializers.CharField(allow_blank=True)


class NetMeteringAgreementSerializer(serializers.Serializer):
    dual_sign_net_metering_file = serializers.BooleanField()
    notes = serializers.CharField(allow_blank=True)


class Step4DataSerializer(serializers.Serializer):
    file_preparation = FilePreparationSerializer()
    payment_tracking = PaymentTrackingSerializer()
    dcr_certificates = DcrCertificatesSerializer()
    dispatch_tracking = DispatchTrackingSerializer()
    net_metering_agreement = NetMeteringAgreementSerializer()
    notes = serializers.CharField(allow_blank=True)


class StatusNotesSerializer(serializers.Serializer):
    notes = serializers.CharField(allow_blank=True)


class RegistrationStatusSerializer(StatusNotesSerializer):
    registration_done = serializers.BooleanField()


class DocumentUploadStatusSerializer(StatusNotesSerializer):
    all_documents_uploaded = serializers.BooleanField()


class SubsidyApplicationSerializer(StatusNotesSerializer):
    subsidy_applied = serializers.BooleanField()
    application_status = serializers.CharField(max_length=50, allow_blank=True)


class Step5DataSerializer(serializers.Serializer):
    registration_status = RegistrationStatusSerializer()
    document_upload_status = DocumentUploadStatusSerializer()
    subsidy_application = SubsidyApplicationSerializer()
    notes = serializers.CharField(allow_blank=True)


# Validated with partial=True; only the sections sent are merged.
STEP_DATA_SERIALIZERS = {
    1: Step1DataSerializer,
    2: Step2DataSerializer,
    3: Step3DataSerializer,
    4: Step4DataSerializer,
    5: Step5DataSerializer,
}


class StepDataResponseSerializer(serializers.Serializer):
    client_id = serializers.UUIDField()
    step_number = serializers.IntegerField()
    data = serializers.JSONField()
    documents = CategoryStateSerializer(many=True)
    completion_percentage = serializers.IntegerField()
    updated_at = serializers.DateTimeField(allow_null=True)
