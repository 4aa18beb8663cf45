from datetime import datetime

import pytest

from portal.models import Feedback, FeedbackQuestionStore
from portal.schemas import parse_question


def submission(seed, **overrides):
    body = {
        'classId': seed['subject_a'],
        'batchId': seed['batch']['id'],
        'semesterNumber': 2,
        'rating': 4,
        'comment': 'Clear explanations',
        'additionalFeedback': [],
    }
    body.update(overrides)
    return body


class TestSubmitFeedback:

    def test_submit_creates_record(self, client, seed, student_headers):
        response = client.post('/api/feedback', json=submission(seed), headers=student_headers)
        assert response.status_code == 201
        record = response.get_json()['feedback']
        assert record['rating'] == 4
        assert record['student_id'] == seed['student']['id']
        assert record['subject_name'] == 'Data Structures'
        assert Feedback.count() == 1

    def test_duplicate_rejected_with_409(self, client, seed, student_headers):
        client.post('/api/feedback', json=submission(seed), headers=student_headers)
        response = client.post('/api/feedback', json=submission(seed, rating=1), headers=student_headers)
        assert response.status_code == 409
        assert response.get_json()['error'] == 'Feedback already submitted for this subject'
        assert Feedback.count() == 1

    def test_concurrent_duplicate_hits_unique_constraint(self, client, seed, student_headers, monkeypatch):
        # both tabs pass the existence check before either insert lands
        monkeypatch.setattr(Feedback, 'exists', staticmethod(lambda student_id, class_id: False))
        first = client.post('/api/feedback', json=submission(seed), headers=student_headers)
        second = client.post('/api/feedback', json=submission(seed, rating=1), headers=student_headers)
        assert first.status_code == 201
        assert second.status_code == 409
        assert second.get_json()['error'] == 'Feedback already submitted for this subject'
        assert Feedback.count() == 1

    @pytest.mark.parametrize('rating', [0, 6, '5', 3.5, None])
    def test_invalid_rating_not_persisted(self, client, seed, student_headers, rating):
        response = client.post('/api/feedback', json=submission(seed, rating=rating), headers=student_headers)
        assert response.status_code == 400
        assert 'details' in response.get_json()
        assert Feedback.count() == 0

    def test_comment_too_long(self, client, seed, student_headers):
        response = client.post('/api/feedback', json=submission(seed, comment='x' * 501),
                               headers=student_headers)
        assert response.status_code == 400

    def test_blank_comment_stored_as_null(self, client, seed, student_headers):
        response = client.post('/api/feedback', json=submission(seed, comment='   '), headers=student_headers)
        assert response.get_json()['feedback']['comment'] is None

    def test_missing_class_id(self, client, seed, student_headers):
        body = submission(seed)
        del body['classId']
        assert client.post('/api/feedback', json=body, headers=student_headers).status_code == 400

    def test_unknown_subject(self, client, seed, student_headers):
        response = client.post('/api/feedback', json=submission(seed, classId=999), headers=student_headers)
        assert response.status_code == 400

    def test_batch_mismatch(self, client, seed, student_headers):
        response = client.post('/api/feedback', json=submission(seed, semesterNumber=3),
                               headers=student_headers)
        assert response.status_code == 400
        assert Feedback.count() == 0

    def test_admin_cannot_submit(self, client, seed, admin_headers):
        response = client.post('/api/feedback', json=submission(seed), headers=admin_headers)
        assert response.status_code == 403

    def test_requires_token(self, client, seed):
        response = client.post('/api/feedback', json=submission(seed))
        assert response.status_code == 401
        assert response.get_json()['error'] == 'Access token required'


class TestQuestionAnswers:

    @pytest.fixture
    def questions(self, seed):
        mood = FeedbackQuestionStore.add(parse_question({
            'question_text': 'How was the pace?',
            'question_type': 'multiple_choice',
            'options': ['Too slow', 'Just right', 'Too fast'],
            'batch_id': seed['batch']['id'],
            'semester_number': 2,
        }))
        remark = FeedbackQuestionStore.add(parse_question({
            'question_text': 'Anything else?',
            'question_type': 'text',
            'batch_id': seed['batch']['id'],
            'semester_number': 2,
        }))
        return mood, remark

    def test_unanswered_question_rejected(self, client, seed, student_headers, questions):
        mood, _ = questions
        body = submission(seed, additionalFeedback=[{'questionId': mood, 'answer': 'Just right'}])
        response = client.post('/api/feedback', json=body, headers=student_headers)
        assert response.status_code == 400
        assert any('Anything else?' in detail for detail in response.get_json()['details'])

    def test_option_outside_choices_rejected(self, client, seed, student_headers, questions):
        mood, remark = questions
        body = submission(seed, additionalFeedback=[
            {'questionId': mood, 'answer': 'Glacial'},
            {'questionId': remark, 'answer': 'No'},
        ])
        assert client.post('/api/feedback', json=body, headers=student_headers).status_code == 400

    def test_answers_stored_with_question_text(self, client, seed, student_headers, questions):
        mood, remark = questions
        body = submission(seed, additionalFeedback=[
            {'questionId': mood, 'answer': 'Just right'},
            {'questionId': remark, 'answer': ' More examples please '},
        ])
        response = client.post('/api/feedback', json=body, headers=student_headers)
        assert response.status_code == 201
        answers = response.get_json()['feedback']['additional_feedback']
        assert answers == [
            {'question_id': mood, 'question_text': 'How was the pace?', 'answer': 'Just right'},
            {'question_id': remark, 'question_text': 'Anything else?', 'answer': 'More examples please'},
        ]

    def test_student_question_list(self, client, student_headers, questions):
        response = client.get('/api/student/feedback-questions', headers=student_headers)
        assert response.status_code == 200
        data = response.get_json()
        assert [q['question_type'] for q in data] == ['multiple_choice', 'text']
        assert data[1]['options'] is None


class TestDailySubjects:

    @pytest.fixture
    def monday(self, monkeypatch):
        def set_time(hour, minute):
            monkeypatch.setattr('routes.student_routes.local_now',
                                lambda: datetime(2024, 1, 1, hour, minute))
        return set_time

    def test_active_subject_in_window(self, client, seed, student_headers, monday):
        monday(9, 10)
        data = client.get('/api/student/daily-subjects', headers=student_headers).get_json()
        assert data['dayOfWeek'] == 1
        assert [s['name'] for s in data['subjects']] == ['Data Structures', 'Operating Systems']
        assert data['activeSubject']['id'] == seed['subject_a']
        assert data['alreadySubmitted'] is False

    def test_no_active_subject_before_class(self, client, seed, student_headers, monday):
        monday(8, 30)
        data = client.get('/api/student/daily-subjects', headers=student_headers).get_json()
        assert data['activeSubject'] is None

    def test_submitted_subject_reported(self, client, seed, student_headers, monday):
        monday(9, 10)
        client.post('/api/feedback', json=submission(seed), headers=student_headers)
        data = client.get('/api/student/daily-subjects', headers=student_headers).get_json()
        assert data['activeSubject']['id'] == seed['subject_a']
        assert data['alreadySubmitted'] is True


class TestNotifications:

    def test_admin_response_becomes_notification(self, client, seed, student_headers, admin_headers):
        feedback_id = client.post('/api/feedback', json=submission(seed),
                                  headers=student_headers).get_json()['feedback']['id']

        response = client.put(f'/api/feedback/{feedback_id}', json={'adminResponse': 'Thanks!'},
                              headers=admin_headers)
        assert response.status_code == 200
        assert response.get_json()['admin_response'] == 'Thanks!'

        unseen = client.get('/api/notifications', headers=student_headers).get_json()
        assert [n['id'] for n in unseen] == [feedback_id]

        assert client.post(f'/api/notifications/{feedback_id}/read', headers=student_headers).status_code == 200
        assert client.get('/api/notifications', headers=student_headers).get_json() == []

    def test_read_all(self, client, seed, student_headers, admin_headers):
        for subject in (seed['subject_a'], seed['subject_b']):
            record = client.post('/api/feedback', json=submission(seed, classId=subject),
                                 headers=student_headers).get_json()['feedback']
            client.put(f"/api/feedback/{record['id']}", json={'adminResponse': 'Noted'}, headers=admin_headers)

        response = client.post('/api/notifications/read-all', headers=student_headers)
        assert response.get_json()['updated'] == 2

    def test_respond_to_missing_feedback(self, client, admin_headers):
        assert client.put('/api/feedback/999', json={'adminResponse': 'x'},
                          headers=admin_headers).status_code == 404


class TestFeedbackHistory:

    def test_student_sees_own_and_admin_sees_all(self, client, seed, student_headers, admin_headers):
        client.post('/api/feedback', json=submission(seed), headers=student_headers)
        own = client.get('/api/feedback', headers=student_headers).get_json()
        everything = client.get('/api/feedback', headers=admin_headers).get_json()
        assert len(own) == 1
        assert len(everything) == 1
        assert own[0]['student_id'] == seed['student']['id']
