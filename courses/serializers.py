from rest_framework import serializers

from .models import Course, Session


class CourseSerializer(serializers.ModelSerializer):
    """
    Serializer for course list/detail views
    """
    totalSessions = serializers.SerializerMethodField()
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)
    updatedAt = serializers.DateTimeField(source='updated_at', read_only=True)

    class Meta:
        model = Course
        fields = [
            'id', 'title', 'description', 'type', 'price', 'status',
            'totalSessions', 'createdAt', 'updatedAt'
        ]

    def get_totalSessions(self, obj):
        # Annotated by the list view; falls back to a count query
        annotated = getattr(obj, 'session_count', None)
        return annotated if annotated is not None else obj.sessions.count()


class CourseCreateUpdateSerializer(serializers.ModelSerializer):
    """
    Serializer for creating and updating courses
    """
    class Meta:
        model = Course
        fields = ['title', 'description', 'type', 'price', 'status']

    def validate_title(self, value):
        if not value.strip():
            raise serializers.ValidationError("Title cannot be empty")
        return value.strip()

    def validate_price(self, value):
        if value is not None and value < 0:
            raise serializers.ValidationError("Price cannot be negative")
        return value

    def validate(self, data):
        course_type = data.get('type', getattr(self.instance, 'type', 'live'))
        price = data['price'] if 'price' in data else getattr(self.instance, 'price', None)
        if course_type == 'finished' and price is None:
            raise serializers.ValidationError({'price': 'Price is required for finished courses'})
        if self.instance is not None and course_type != self.instance.type and self.instance.sessions.exists():
            raise serializers.ValidationError({'type': 'Cannot change the type of a course that already has sessions'})
        return data


class SessionSerializer(serializers.ModelSerializer):
    """
    Session with its derived position inside the course
    """
    courseId = serializers.UUIDField(source='course_id', read_only=True)
    index = serializers.IntegerField(source='order', read_only=True)
    displayTitle = serializers.CharField(source='display_title', read_only=True)

    class Meta:
        model = Session
        fields = ['id', 'courseId', 'title', 'displayTitle', 'date', 'index']


class SessionCreateUpdateSerializer(serializers.Serializer):
    """
    Input for creating/updating a session; ordering is never client-supplied
    """
    title = serializers.CharField(max_length=200, required=False, allow_blank=True, allow_null=True)
    date = serializers.DateTimeField(required=True)

    def validate(self, data):
        if self.partial and not data:
            raise serializers.ValidationError("At least one field must be provided for update")
        return data
