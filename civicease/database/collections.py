# Collection Names
COLLECTIONS = {
    'users': 'users',
    'departments': 'departments',
    'complaints': 'complaints',
    'assignments': 'assignments',
    'feedback': 'feedback',
    'announcements': 'announcements',
}

# Collection Structure Documentation
COLLECTION_SCHEMAS = {
    'users': {
        'fields': ['id', 'email', 'name', 'phone', 'role', 'aadhaar', 'address', 'workTypes', 'departments', 'departmentId', 'departmentName', 'createdAt'],
        'required': ['id', 'email', 'name', 'role'],
        'indexes': ['role', 'departmentId']
    },
    'departments': {
        'fields': ['id', 'name', 'customerCare', 'subAdminId', 'subAdminName', 'createdAt'],
        'required': ['id', 'name', 'customerCare'],
        'indexes': ['name', 'subAdminId']
    },
    # doc id = complaint id
    'complaints': {
        'fields': ['id', 'token', 'citizenId', 'citizenName', 'citizenPhone', 'departmentId', 'complaintType', 'description', 'location', 'latitude', 'longitude', 'photos', 'status', 'priority', 'timeline', 'closureReason', 'closedBy', 'createdAt', 'updatedAt'],
        'required': ['id', 'token', 'citizenId', 'departmentId', 'complaintType', 'description', 'location', 'status', 'timeline'],
        'indexes': ['citizenId', 'departmentId', 'status', 'token', 'createdAt']
    },
    # doc id = complaint id (1:1)
    'assignments': {
        'fields': ['complaintId', 'subAdminId', 'subAdminName', 'subAdminAssignedAt', 'contractorId', 'contractorName', 'contractorPhone', 'contractorAssignedAt', 'estimatedFees', 'estimatedTime', 'assignmentDescription', 'contractorStatus', 'workStartedAt', 'rejectedAt', 'completedAt', 'completionNotes', 'completionPhotos', 'createdAt', 'updatedAt'],
        'required': ['complaintId'],
        'indexes': ['contractorId', 'subAdminId', 'contractorStatus']
    },
    # doc id = complaint id (1:1)
    'feedback': {
        'fields': ['complaintId', 'citizenId', 'rating', 'comment', 'satisfied', 'submittedAt', 'round', 'previousRounds'],
        'required': ['complaintId', 'citizenId', 'rating', 'satisfied'],
        'indexes': ['citizenId', 'rating']
    },
    'announcements': {
        'fields': ['id', 'title', 'message', 'priority', 'isActive', 'createdBy', 'createdByName', 'createdAt', 'updatedAt'],
        'required': ['id', 'title', 'message'],
        'indexes': ['isActive', 'createdAt']
    },
}
