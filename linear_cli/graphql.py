"""
GraphQL documents used by `LinearClient`.

Every connection query takes `$first` and `$after` so `Connection.fetch_next` can
re-issue it with the previous page's end cursor.
"""

from __future__ import annotations

PAGE_INFO = "pageInfo { hasNextPage endCursor }"

USER_FIELDS = "id name displayName email admin active createdAt"

TEAM_FIELDS = "id key name description issueCount cyclesEnabled createdAt"

STATE_FIELDS = "id name type color position"

LABEL_FIELDS = "id name color description"

ISSUE_FIELDS = f"""
  id identifier title description priority url branchName dueDate createdAt updatedAt
  state {{ {STATE_FIELDS} }}
  team {{ id key name }}
  assignee {{ {USER_FIELDS} }}
  delegate {{ {USER_FIELDS} }}
  project {{ id name }}
  cycle {{ id number name }}
  labels {{ nodes {{ {LABEL_FIELDS} }} }}
"""

ISSUE_DETAIL_FIELDS = f"""
  {ISSUE_FIELDS}
  comments(first: 50) {{ nodes {{ id body url createdAt user {{ {USER_FIELDS} }} }} }}
"""

PROJECT_FIELDS = f"""
  id name description state progress url targetDate startDate createdAt updatedAt
  lead {{ {USER_FIELDS} }}
  teams {{ nodes {{ id key name }} }}
"""

SESSION_FIELDS = """
  id status createdAt
  issue { id }
  appUser { name }
  externalLinks { url }
  activities(first: 50) {
    nodes {
      ephemeral createdAt
      content {
        __typename
        ... on AgentActivityResponseContent { body }
        ... on AgentActivityThoughtContent { body }
        ... on AgentActivityErrorContent { body }
        ... on AgentActivityElicitationContent { body }
      }
    }
  }
"""

VIEWER = f"query Viewer {{ viewer {{ {USER_FIELDS} organization {{ name urlKey }} }} }}"

TEAMS = f"""
query Teams($first: Int, $after: String) {{
  teams(first: $first, after: $after) {{ nodes {{ {TEAM_FIELDS} }} {PAGE_INFO} }}
}}
"""

TEAM_MEMBERS = f"""
query TeamMembers($id: String!, $first: Int, $after: String) {{
  team(id: $id) {{ members(first: $first, after: $after) {{ nodes {{ {USER_FIELDS} }} {PAGE_INFO} }} }}
}}
"""

TEAM_STATES = f"""
query TeamStates($id: String!, $first: Int, $after: String) {{
  team(id: $id) {{ states(first: $first, after: $after) {{ nodes {{ {STATE_FIELDS} }} {PAGE_INFO} }} }}
}}
"""

TEAM_LABELS = f"""
query TeamLabels($id: String!, $first: Int, $after: String) {{
  team(id: $id) {{ labels(first: $first, after: $after) {{ nodes {{ {LABEL_FIELDS} }} {PAGE_INFO} }} }}
}}
"""

USERS = f"""
query Users($first: Int, $after: String) {{
  users(first: $first, after: $after) {{ nodes {{ {USER_FIELDS} }} {PAGE_INFO} }}
}}
"""

PROJECTS = f"""
query Projects($first: Int, $after: String) {{
  projects(first: $first, after: $after) {{ nodes {{ {PROJECT_FIELDS} }} {PAGE_INFO} }}
}}
"""

ISSUES = f"""
query Issues($filter: IssueFilter, $first: Int, $after: String, $orderBy: PaginationOrderBy) {{
  issues(filter: $filter, first: $first, after: $after, orderBy: $orderBy) {{
    nodes {{ {ISSUE_FIELDS} }}
    {PAGE_INFO}
  }}
}}
"""

ISSUE = f"query Issue($id: String!) {{ issue(id: $id) {{ {ISSUE_DETAIL_FIELDS} }} }}"

AGENT_SESSIONS = f"""
query AgentSessions($first: Int, $after: String) {{
  agentSessions(first: $first, after: $after) {{ nodes {{ {SESSION_FIELDS} }} {PAGE_INFO} }}
}}
"""

ISSUE_CREATE = f"""
mutation IssueCreate($input: IssueCreateInput!) {{
  issueCreate(input: $input) {{ success issue {{ {ISSUE_FIELDS} }} }}
}}
"""

ISSUE_UPDATE = f"""
mutation IssueUpdate($id: String!, $input: IssueUpdateInput!) {{
  issueUpdate(id: $id, input: $input) {{ success issue {{ {ISSUE_FIELDS} }} }}
}}
"""

ISSUE_ARCHIVE = """
mutation IssueArchive($id: String!) { issueArchive(id: $id) { success } }
"""

COMMENT_CREATE = f"""
mutation CommentCreate($input: CommentCreateInput!) {{
  commentCreate(input: $input) {{ success comment {{ id body url createdAt user {{ {USER_FIELDS} }} }} }}
}}
"""

PROJECT_CREATE = f"""
mutation ProjectCreate($input: ProjectCreateInput!) {{
  projectCreate(input: $input) {{ success project {{ {PROJECT_FIELDS} }} }}
}}
"""

PROJECT_UPDATE = f"""
mutation ProjectUpdate($id: String!, $input: ProjectUpdateInput!) {{
  projectUpdate(id: $id, input: $input) {{ success project {{ {PROJECT_FIELDS} }} }}
}}
"""

PROJECT_DELETE = """
mutation ProjectDelete($id: String!) { projectDelete(id: $id) { success } }
"""

# =============================================================================
# Project statuses, labels, milestones and updates
# =============================================================================

PROJECT_STATUSES = f"""
query ProjectStatuses($first: Int, $after: String) {{
  projectStatuses(first: $first, after: $after) {{ nodes {{ id name type }} {PAGE_INFO} }}
}}
"""

PROJECT_LABELS = f"""
query ProjectLabels($id: String!, $first: Int, $after: String) {{
  project(id: $id) {{
    labels(first: $first, after: $after) {{ nodes {{ id name color description isGroup }} {PAGE_INFO} }}
  }}
}}
"""

MILESTONE_FIELDS = "id name description status progress targetDate"

PROJECT_MILESTONES = f"""
query ProjectMilestones($id: String!, $first: Int, $after: String) {{
  project(id: $id) {{
    projectMilestones(first: $first, after: $after) {{ nodes {{ {MILESTONE_FIELDS} }} {PAGE_INFO} }}
  }}
}}
"""

PROJECT_MILESTONE_CREATE = f"""
mutation ProjectMilestoneCreate($input: ProjectMilestoneCreateInput!) {{
  projectMilestoneCreate(input: $input) {{ success projectMilestone {{ {MILESTONE_FIELDS} }} }}
}}
"""

PROJECT_UPDATE_CREATE = """
mutation ProjectUpdateCreate($input: ProjectUpdateCreateInput!) {
  projectUpdateCreate(input: $input) { success projectUpdate { id body health url createdAt } }
}
"""

# =============================================================================
# Initiatives
# =============================================================================

INITIATIVE_FIELDS = f"""
  id name description status health url targetDate createdAt updatedAt
  owner {{ {USER_FIELDS} }}
  creator {{ {USER_FIELDS} }}
  projects(first: 50) {{ nodes {{ id name }} }}
"""

INITIATIVES = f"""
query Initiatives($first: Int, $after: String) {{
  initiatives(first: $first, after: $after) {{ nodes {{ {INITIATIVE_FIELDS} }} {PAGE_INFO} }}
}}
"""

INITIATIVE_CREATE = f"""
mutation InitiativeCreate($input: InitiativeCreateInput!) {{
  initiativeCreate(input: $input) {{ success initiative {{ {INITIATIVE_FIELDS} }} }}
}}
"""

INITIATIVE_UPDATE = f"""
mutation InitiativeUpdate($id: String!, $input: InitiativeUpdateInput!) {{
  initiativeUpdate(id: $id, input: $input) {{ success initiative {{ {INITIATIVE_FIELDS} }} }}
}}
"""

# =============================================================================
# Cycles, documents and notifications
# =============================================================================

TEAM_CYCLES = f"""
query TeamCycles($id: String!, $first: Int, $after: String) {{
  team(id: $id) {{
    cycles(first: $first, after: $after) {{
      nodes {{ id number name startsAt endsAt progress }}
      {PAGE_INFO}
    }}
  }}
}}
"""

DOCUMENT_FIELDS = f"""
  id title content slugId url createdAt updatedAt
  creator {{ {USER_FIELDS} }}
  project {{ id name }}
"""

DOCUMENTS = f"""
query Documents($filter: DocumentFilter, $first: Int, $after: String) {{
  documents(filter: $filter, first: $first, after: $after) {{ nodes {{ {DOCUMENT_FIELDS} }} {PAGE_INFO} }}
}}
"""

DOCUMENT = f"query Document($id: String!) {{ document(id: $id) {{ {DOCUMENT_FIELDS} }} }}"

DOCUMENT_CREATE = f"""
mutation DocumentCreate($input: DocumentCreateInput!) {{
  documentCreate(input: $input) {{ success document {{ {DOCUMENT_FIELDS} }} }}
}}
"""

NOTIFICATIONS = f"""
query Notifications($first: Int, $after: String) {{
  notifications(first: $first, after: $after) {{
    nodes {{
      id type readAt createdAt
      actor {{ {USER_FIELDS} }}
      ... on IssueNotification {{
        issue {{ id identifier title }}
        comment {{ body }}
      }}
    }}
    {PAGE_INFO}
  }}
}}
"""

NOTIFICATION_MARK_READ_ALL = """
mutation NotificationMarkReadAll($input: NotificationEntityInput!, $readAt: DateTime!) {
  notificationMarkReadAll(input: $input, readAt: $readAt) { success }
}
"""

NOTIFICATION_ARCHIVE_ALL = """
mutation NotificationArchiveAll($input: NotificationEntityInput!) {
  notificationArchiveAll(input: $input) { success }
}
"""

NOTIFICATION_SNOOZE_ALL = """
mutation NotificationSnoozeAll($input: NotificationEntityInput!, $snoozedUntilAt: DateTime!) {
  notificationSnoozeAll(input: $input, snoozedUntilAt: $snoozedUntilAt) { success }
}
"""
