from coursepay.models.profile import Profile
from coursepay.models.course import Course
from coursepay.models.payment import PaymentAttempt
from coursepay.models.enrollment import Enrollment

# add ALL models here
