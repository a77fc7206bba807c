from io import StringIO

import pytest
from django.core.management import call_command
from django.core.management.base import CommandError

from apps.calls.models import UNASSIGNED, PhoneNumber, PhoneNumberStatus


def _run(*args):
    out = StringIO()
    call_command('fix_unassigned_phone_numbers', *args, stdout=out, stderr=StringIO())
    return out.getvalue()


@pytest.mark.django_db
class TestFixUnassignedPhoneNumbers:
    """Tests for the fix_unassigned_phone_numbers command"""

    def test_rewrites_empty_assignments(self, make_numbers):
        """Empty assigned_to values become UNASSIGNED."""
        make_numbers(30)
        PhoneNumber.objects.filter(phone_number__lt='9000000012').update(assigned_to='')

        output = _run('--batch-size', '5')

        assert not PhoneNumber.objects.filter(assigned_to='').exists()
        assert PhoneNumber.objects.filter(assigned_to=UNASSIGNED).count() == 30
        assert 'Records found:       12' in output
        assert 'Batch 3/3 done' in output
        assert 'All records updated' in output

    def test_assigned_numbers_are_untouched(self, make_numbers, assigned_number):
        """Only empty values are rewritten."""
        make_numbers(2)
        PhoneNumber.objects.filter(area_code='PUNE', status=PhoneNumberStatus.AVAILABLE).update(assigned_to='')

        _run()

        assigned_number.refresh_from_db()
        assert assigned_number.assigned_to != UNASSIGNED
        assert assigned_number.status == PhoneNumberStatus.ASSIGNED

    def test_nothing_to_do(self, make_numbers):
        """A clean table reports nothing to update."""
        make_numbers(2)

        assert 'Nothing to do' in _run()

    def test_rollback_empties_available_pool(self, make_numbers, assigned_number):
        """Rollback only affects available, unassigned numbers."""
        make_numbers(3)

        _run('--rollback')

        assert PhoneNumber.objects.filter(assigned_to='').count() == 3
        assigned_number.refresh_from_db()
        assert assigned_number.assigned_to != ''

    def test_invalid_batch_size(self, db):
        """Batch size must be positive."""
        with pytest.raises(CommandError):
            _run('--batch-size', '0')
